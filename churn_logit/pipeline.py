"""
Analysis Pipeline
=================

One synchronous pass: load, explore, split, fit recipe, fit model,
predict and score. Any failure aborts the run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import matplotlib.pyplot as plt
import pandas as pd
from loguru import logger

from churn_logit.config import MODELS_DIR, get_config
from churn_logit.data import DataLoader, Split, split_data
from churn_logit.features import FittedRecipe, Recipe
from churn_logit.models import ChurnModel, EvaluationResult, ModelEvaluator, ModelTrainer
from churn_logit.reporting import ExploratoryReporter
from churn_logit.utils.helpers import format_metrics

RECIPE_FILE = "fitted_recipe.joblib"
MODEL_FILE = "logistic_model.joblib"


@dataclass(eq=False)
class AnalysisResult:
    """Everything one analysis run produced."""

    split: Split
    recipe: FittedRecipe
    model: ChurnModel
    predictions: pd.DataFrame
    evaluation: EvaluationResult
    exploration: Optional[dict] = None
    artifact_paths: Dict[str, Path] = field(default_factory=dict)


def save_artifacts(
    recipe: FittedRecipe,
    model: ChurnModel,
    models_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Path]:
    """Persist the fitted recipe and model for scoring new customers."""
    models_dir = Path(models_dir or MODELS_DIR)
    return {
        "recipe": recipe.save(models_dir / RECIPE_FILE),
        "model": model.save(models_dir / MODEL_FILE),
    }


def load_artifacts(models_dir: Optional[Union[str, Path]] = None) -> Tuple[FittedRecipe, ChurnModel]:
    """Load a fitted recipe and model saved by ``save_artifacts``."""
    models_dir = Path(models_dir or MODELS_DIR)
    for filename in (RECIPE_FILE, MODEL_FILE):
        if not (models_dir / filename).exists():
            raise FileNotFoundError(f"Saved artifact not found: {models_dir / filename}")
    return FittedRecipe.load(models_dir / RECIPE_FILE), ChurnModel.load(models_dir / MODEL_FILE)


def run_analysis(
    data: Optional[Union[str, Path, pd.DataFrame]] = None,
    config: Optional[dict] = None,
    seed: Optional[int] = None,
    ratio: Optional[float] = None,
    threshold: Optional[float] = None,
    explore: bool = False,
    track: Optional[bool] = None,
    save: bool = True,
    models_dir: Optional[Union[str, Path]] = None,
    figures_dir: Optional[Union[str, Path]] = None
) -> AnalysisResult:
    """
    Run the churn analysis end to end.

    Args:
        data: Raw DataFrame, or path to the raw file (config default if None)
        config: Configuration dictionary
        seed: Split seed (overrides config)
        ratio: Training fraction (overrides config)
        threshold: Classification threshold (overrides config)
        explore: Whether to produce the exploratory report
        track: Whether to log the run to MLflow (config default if None)
        save: Whether to save artifacts and the confusion matrix plot
        models_dir: Where artifacts are saved, MODELS_DIR by default
        figures_dir: Where plots are saved, FIGURES_DIR by default

    Returns:
        AnalysisResult
    """
    config = config or get_config()
    split_config = config.get("data", {}).get("split", {})
    seed = split_config.get("seed", 789) if seed is None else seed
    ratio = split_config.get("ratio", 0.7) if ratio is None else ratio

    # Load data
    loader = DataLoader(config)
    raw = data if isinstance(data, pd.DataFrame) else loader.load_raw_data(data)
    df = loader.prepare(raw)
    outcome = loader.outcome
    logger.info(f"Outcome balance: {loader.validate_data(df)['target_balance']}")

    exploration = None
    if explore:
        exploration = ExploratoryReporter(outcome.column, config, figures_dir=figures_dir).generate_report(df)

    # Split data
    split = split_data(df, ratio=ratio, seed=seed, strata=outcome.column)
    logger.info(f"Split summary: {split.summary(outcome.positive)}")

    # Fit recipe on training data only
    recipe = Recipe.from_config(outcome.column, config).fit(split.train)
    baked_train = recipe.apply(split.train)

    # Train
    model = ModelTrainer(config).train(baked_train, outcome)
    logger.info(f"\nCoefficients:\n{model.coefficients().to_string(index=False)}")

    # Evaluate
    evaluator = ModelEvaluator(config)
    predictions = evaluator.predict(model, recipe, split.test, threshold=threshold)
    evaluation = evaluator.evaluate_predictions(predictions, outcome, threshold=threshold)
    logger.info(f"\nConfusion matrix:\n{evaluation.confusion.to_frame()}")
    logger.info(f"Metrics: {format_metrics(evaluation.metrics())}")

    result = AnalysisResult(
        split=split,
        recipe=recipe,
        model=model,
        predictions=predictions,
        evaluation=evaluation,
        exploration=exploration,
    )

    if save:
        result.artifact_paths = save_artifacts(recipe, model, models_dir)
        fig = evaluator.plot_confusion_matrix(evaluation, figures_dir=figures_dir)
        plt.close(fig)

    if track is None:
        track = config.get("mlflow", {}).get("enabled", False)
    if track:
        from churn_logit.tracking import log_run
        log_run(result, config)

    logger.info("Analysis complete!")
    return result


def score_new_data(
    data: pd.DataFrame,
    recipe: FittedRecipe,
    model: ChurnModel,
    config: Optional[dict] = None,
    threshold: Optional[float] = None
) -> pd.DataFrame:
    """
    Score raw customer rows, with or without an outcome column.

    Args:
        data: Raw DataFrame in the input file's layout
        recipe: Fitted recipe
        model: Fitted model
        config: Configuration dictionary
        threshold: Classification threshold (overrides config)

    Returns:
        Prepared rows with ``predicted_class`` and ``predicted_probability``
    """
    config = config or get_config()
    df = DataLoader(config).prepare(data, require_outcome=False)
    predictions = ModelEvaluator(config).predict(model, recipe, df, threshold=threshold)
    logger.info(f"Scored {len(predictions)} customers")
    return predictions
