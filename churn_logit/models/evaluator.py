"""
Model Evaluator Module
======================

Held-out predictions, confusion matrix and accuracy/sensitivity/specificity.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from loguru import logger
from sklearn.metrics import confusion_matrix

from churn_logit.config import FIGURES_DIR, get_config
from churn_logit.data.outcome import BinaryOutcome
from churn_logit.exceptions import MissingColumnError, UndefinedMetricError
from churn_logit.features.recipe import FittedRecipe
from churn_logit.models.trainer import ChurnModel
from churn_logit.utils.helpers import safe_divide


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts of (actual, predicted) pairs over the positive and negative levels."""

    positive: str
    negative: str
    tp: int
    fp: int
    fn: int
    tn: int

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.fn + self.tn

    def to_frame(self) -> pd.DataFrame:
        """Rows are actual classes, columns predicted classes, positive first."""
        labels = [self.positive, self.negative]
        return pd.DataFrame(
            [[self.tp, self.fn], [self.fp, self.tn]],
            index=pd.Index(labels, name="actual"),
            columns=pd.Index(labels, name="predicted")
        )


@dataclass(frozen=True)
class EvaluationResult:
    confusion: ConfusionMatrix
    accuracy: float
    sensitivity: float
    specificity: float
    threshold: float

    def metrics(self) -> Dict[str, float]:
        return {
            "accuracy": self.accuracy,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
        }


class ModelEvaluator:
    """Evaluate a fitted recipe and model on held-out data."""

    def __init__(self, config: Optional[dict] = None):
        """
        Initialize ModelEvaluator.

        Args:
            config: Configuration dictionary
        """
        self.config = config or get_config()
        self.eval_config = self.config.get("evaluation", {})
        self.threshold = self.eval_config.get("threshold", 0.5)
        self.strict = self.eval_config.get("strict", False)
        self.dpi = self.config.get("reporting", {}).get("dpi", 150)
        self.evaluation_results = {}

    def predict(
        self,
        model: ChurnModel,
        recipe: FittedRecipe,
        data: pd.DataFrame,
        threshold: Optional[float] = None
    ) -> pd.DataFrame:
        """
        Predict every row of ``data``.

        Args:
            model: Fitted model
            recipe: Recipe fitted on the training data
            data: Rows to score, labeled or not
            threshold: Classification threshold

        Returns:
            ``data`` joined with ``predicted_class`` and ``predicted_probability``
        """
        threshold = self.threshold if threshold is None else threshold

        baked = recipe.apply(data)
        return data.assign(
            predicted_class=model.predict(baked, threshold=threshold),
            predicted_probability=model.predict_proba(baked)
        )

    def confusion_matrix(
        self,
        actual: pd.Series,
        predicted: pd.Series,
        outcome: BinaryOutcome
    ) -> ConfusionMatrix:
        """
        Get confusion matrix.

        Args:
            actual: True labels
            predicted: Predicted labels
            outcome: Outcome definition giving the positive level

        Returns:
            ConfusionMatrix
        """
        labels = list(outcome.levels)
        cm = confusion_matrix(
            actual.astype(object).to_numpy(),
            predicted.astype(object).to_numpy(),
            labels=labels
        )
        (tp, fn), (fp, tn) = cm.tolist()
        return ConfusionMatrix(outcome.positive, outcome.negative, tp=tp, fp=fp, fn=fn, tn=tn)

    def compute_metrics(
        self,
        cm: ConfusionMatrix,
        threshold: float,
        strict: Optional[bool] = None
    ) -> EvaluationResult:
        """
        Compute accuracy, sensitivity and specificity from a confusion matrix.

        A class with no rows in the evaluated data leaves its rate undefined.
        It is reported as NaN, or raises ``UndefinedMetricError`` when strict.
        """
        strict = self.strict if strict is None else strict
        if cm.total == 0:
            raise UndefinedMetricError("Cannot evaluate an empty dataset")

        for name, label, denominator in (
            ("sensitivity", cm.positive, cm.tp + cm.fn),
            ("specificity", cm.negative, cm.tn + cm.fp),
        ):
            if denominator == 0:
                message = f"{name} is undefined: no '{label}' rows in the evaluated data"
                if strict:
                    raise UndefinedMetricError(message, value=label)
                logger.warning(message)

        return EvaluationResult(
            confusion=cm,
            accuracy=(cm.tp + cm.tn) / cm.total,
            sensitivity=safe_divide(cm.tp, cm.tp + cm.fn),
            specificity=safe_divide(cm.tn, cm.tn + cm.fp),
            threshold=threshold
        )

    def evaluate_predictions(
        self,
        predictions: pd.DataFrame,
        outcome: BinaryOutcome,
        threshold: Optional[float] = None,
        model_name: str = "logistic_regression"
    ) -> EvaluationResult:
        """
        Score predictions produced by ``predict``.

        Args:
            predictions: Output of ``predict`` on labeled data
            outcome: Outcome definition
            threshold: Threshold the predictions were made with
            model_name: Key under which results are stored

        Returns:
            EvaluationResult
        """
        threshold = self.threshold if threshold is None else threshold
        if outcome.column not in predictions.columns:
            raise MissingColumnError(f"Outcome column '{outcome.column}' not found", column=outcome.column)

        cm = self.confusion_matrix(predictions[outcome.column], predictions["predicted_class"], outcome)
        result = self.compute_metrics(cm, threshold)

        self.evaluation_results[model_name] = result
        logger.info(
            f"{model_name} - Accuracy: {result.accuracy:.4f}, "
            f"Sensitivity: {result.sensitivity:.4f}, Specificity: {result.specificity:.4f}"
        )
        return result

    def evaluate(
        self,
        model: ChurnModel,
        recipe: FittedRecipe,
        test: pd.DataFrame,
        threshold: Optional[float] = None
    ) -> EvaluationResult:
        """Predict ``test`` and score the predictions."""
        if len(test) == 0:
            raise UndefinedMetricError("Cannot evaluate an empty dataset")

        predictions = self.predict(model, recipe, test, threshold=threshold)
        return self.evaluate_predictions(predictions, model.outcome, threshold=threshold)

    @staticmethod
    def metrics_table(result: EvaluationResult) -> pd.DataFrame:
        """Metric/estimate table for the report."""
        return pd.DataFrame(
            [
                {"metric": name, "estimator": "binary", "estimate": value}
                for name, value in result.metrics().items()
            ]
        )

    def plot_confusion_matrix(
        self,
        result: EvaluationResult,
        model_name: str = "Logistic Regression",
        save: bool = True,
        figures_dir: Optional[Union[str, Path]] = None,
        figsize: Tuple[int, int] = (8, 6)
    ) -> plt.Figure:
        """
        Plot confusion matrix heatmap.

        Args:
            result: Evaluation result
            model_name: Name for title
            save: Whether to save figure
            figures_dir: Output directory, FIGURES_DIR by default
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        cm = result.confusion.to_frame()
        cm_norm = cm.div(cm.sum(axis=1), axis=0).fillna(0.0)

        fig, axes = plt.subplots(1, 2, figsize=(figsize[0]*2, figsize[1]))

        # Raw counts
        sns.heatmap(cm, annot=True, fmt="d", cmap="Blues", ax=axes[0])
        axes[0].set_title(f"{model_name} - Confusion Matrix (Counts)")
        axes[0].set_xlabel("Predicted")
        axes[0].set_ylabel("Actual")

        # Normalized
        sns.heatmap(cm_norm, annot=True, fmt=".2%", cmap="Blues", ax=axes[1])
        axes[1].set_title(f"{model_name} - Confusion Matrix (Normalized)")
        axes[1].set_xlabel("Predicted")
        axes[1].set_ylabel("Actual")

        plt.tight_layout()

        if save:
            figures_dir = Path(figures_dir or FIGURES_DIR)
            figures_dir.mkdir(parents=True, exist_ok=True)
            filepath = figures_dir / f"confusion_matrix_{model_name.lower().replace(' ', '_')}.png"
            fig.savefig(filepath, dpi=self.dpi, bbox_inches="tight")
            logger.info(f"Saved confusion matrix plot to {filepath}")

        return fig
