"""
Model Trainer Module
====================

Maximum-likelihood logistic regression on recipe output.
"""

import warnings
from pathlib import Path
from typing import List, Optional, Union

import joblib
import numpy as np
import pandas as pd
from loguru import logger
from scipy import stats
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression

from churn_logit.config import get_config
from churn_logit.data.outcome import BinaryOutcome
from churn_logit.exceptions import ChurnAnalysisError, DegenerateResponseError, MissingColumnError

DEFAULT_PARAMS = {"C": np.inf, "solver": "lbfgs", "max_iter": 1000}


class ChurnModel:
    """Fitted logistic regression with named coefficients and outcome labels."""

    def __init__(
        self,
        estimator: LogisticRegression,
        feature_names: List[str],
        outcome: BinaryOutcome,
        covariance: Optional[np.ndarray] = None
    ):
        self.estimator = estimator
        self.feature_names = feature_names
        self.outcome = outcome
        self.covariance = covariance

    @property
    def intercept(self) -> float:
        return float(self.estimator.intercept_[0])

    @property
    def coef(self) -> pd.Series:
        return pd.Series(self.estimator.coef_[0], index=self.feature_names, name="estimate")

    def _design(self, rows: pd.DataFrame) -> np.ndarray:
        missing = [col for col in self.feature_names if col not in rows.columns]
        if missing:
            raise MissingColumnError(f"Feature columns not found: {missing}", column=missing[0])
        return rows[self.feature_names].to_numpy(dtype=float)

    def predict_proba(self, rows: pd.DataFrame) -> pd.Series:
        """Probability of the positive outcome for each row."""
        proba = self.estimator.predict_proba(self._design(rows))[:, 1]
        return pd.Series(proba, index=rows.index, name="predicted_probability")

    def predict(self, rows: pd.DataFrame, threshold: float = 0.5) -> pd.Series:
        """Positive label where the probability reaches the threshold, negative otherwise."""
        proba = self.predict_proba(rows)
        labels = np.where(proba >= threshold, self.outcome.positive, self.outcome.negative)
        return pd.Series(
            pd.Categorical(labels, categories=list(self.outcome.levels)),
            index=rows.index,
            name="predicted_class"
        )

    def coefficients(self) -> pd.DataFrame:
        """
        Coefficient table on the log-odds scale.

        Standard errors come from the inverse Fisher information at the
        fitted estimates, and p-values from the normal approximation.
        """
        terms = ["(Intercept)"] + self.feature_names
        estimates = np.concatenate([[self.intercept], self.estimator.coef_[0]])

        table = pd.DataFrame({"term": terms, "estimate": estimates})
        if self.covariance is not None:
            std_error = np.sqrt(np.diag(self.covariance))
            table["std_error"] = std_error
            table["statistic"] = estimates / std_error
            table["p_value"] = 2 * stats.norm.sf(np.abs(table["statistic"]))
        table["odds_ratio"] = np.exp(estimates)
        return table

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)
        logger.info(f"Saved model to {path}")
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> "ChurnModel":
        model = joblib.load(path)
        if not isinstance(model, ChurnModel):
            raise TypeError(f"{path} does not hold a ChurnModel")
        return model


class ModelTrainer:
    """Fit logistic regression models for the churn outcome."""

    def __init__(self, config: Optional[dict] = None):
        """
        Initialize ModelTrainer.

        Args:
            config: Configuration dictionary
        """
        self.config = config or get_config()
        self.model_config = self.config.get("model", {})

    def train(
        self,
        train: pd.DataFrame,
        outcome: BinaryOutcome,
        params: Optional[dict] = None
    ) -> ChurnModel:
        """
        Fit the outcome on every other column of preprocessed training data.

        Args:
            train: Recipe output for the training set, outcome included
            outcome: Outcome definition
            params: LogisticRegression parameters (overrides config)

        Returns:
            Fitted ChurnModel
        """
        if outcome.column not in train.columns:
            raise MissingColumnError(f"Outcome column '{outcome.column}' not found", column=outcome.column)

        invalid = ~train[outcome.column].isin(outcome.levels)
        if invalid.any():
            bad = train.loc[invalid, outcome.column].iloc[0]
            raise DegenerateResponseError(
                f"Outcome '{outcome.column}' has {int(invalid.sum())} values outside {list(outcome.levels)}, e.g. {bad!r}",
                column=outcome.column,
                value=bad
            )

        observed = train[outcome.column].unique()
        if len(observed) < 2:
            raise DegenerateResponseError(
                f"Outcome '{outcome.column}' needs two classes to fit, observed {list(observed)}",
                column=outcome.column,
                value=list(observed)
            )

        feature_names = [col for col in train.columns if col != outcome.column]
        X = self._design_matrix(train, feature_names)
        y = outcome.is_positive(train[outcome.column]).to_numpy(dtype=int)

        self._check_rank(X, feature_names)

        if params is None:
            params = {**DEFAULT_PARAMS, **self.model_config.get("params", {})}

        logger.info(f"Training logistic regression on {X.shape[0]} rows, {X.shape[1]} features...")
        estimator = LogisticRegression(**params)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ConvergenceWarning)
            estimator.fit(X, y)
        for warning in caught:
            if issubclass(warning.category, ConvergenceWarning):
                logger.warning(f"Logistic regression did not converge: {warning.message}")

        eta = estimator.decision_function(X)
        if np.array_equal(eta > 0, y.astype(bool)):
            raise DegenerateResponseError(
                f"Predictors perfectly separate '{outcome.column}'; maximum likelihood estimates do not exist",
                column=outcome.column
            )

        model = ChurnModel(estimator, feature_names, outcome, self._covariance(X, estimator))
        logger.info(f"Fitted coefficients: intercept={model.intercept:.4f}, {model.coef.round(4).to_dict()}")
        return model

    @staticmethod
    def _design_matrix(train: pd.DataFrame, feature_names: List[str]) -> np.ndarray:
        if not feature_names:
            raise ChurnAnalysisError("No predictor columns to fit")

        non_numeric = [col for col in feature_names if not pd.api.types.is_numeric_dtype(train[col])]
        if non_numeric:
            raise ChurnAnalysisError(
                f"Predictors must be numeric after preprocessing, got {non_numeric}",
                column=non_numeric[0]
            )

        missing = train[feature_names].isna().any()
        if missing.any():
            column = missing[missing].index[0]
            raise ChurnAnalysisError(f"Predictor '{column}' has missing values", column=column)

        return train[feature_names].to_numpy(dtype=float)

    @staticmethod
    def _check_rank(X: np.ndarray, feature_names: List[str]):
        """Raise on the first column that is a linear combination of the intercept and earlier columns."""
        design = np.column_stack([np.ones(len(X)), X])
        if np.linalg.matrix_rank(design) == design.shape[1]:
            return

        rank = 1
        for i, name in enumerate(feature_names, start=1):
            new_rank = np.linalg.matrix_rank(design[:, : i + 1])
            if new_rank == rank:
                raise DegenerateResponseError(
                    f"Design matrix is rank-deficient: '{name}' is collinear with earlier columns",
                    column=name
                )
            rank = new_rank

    @staticmethod
    def _covariance(X: np.ndarray, estimator: LogisticRegression) -> Optional[np.ndarray]:
        design = np.column_stack([np.ones(len(X)), X])
        p = estimator.predict_proba(X)[:, 1]
        information = design.T @ (design * (p * (1 - p))[:, None])
        try:
            return np.linalg.inv(information)
        except np.linalg.LinAlgError:
            logger.warning("Fisher information is singular; standard errors unavailable")
            return None
