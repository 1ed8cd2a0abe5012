"""
Preprocessing Recipe Module
===========================

Declarative preprocessing that is fitted on training data and then applied
identically to any dataset with the same schema.

A ``Recipe`` only describes the steps. ``Recipe.fit`` learns every step's
parameters from the predictors of the training data and returns a
``FittedRecipe``; the outcome column is never shown to a step.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import joblib
import numpy as np
import pandas as pd
from loguru import logger
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from churn_logit.config import get_config
from churn_logit.exceptions import MissingColumnError, UnseenCategoryError

UNSEEN_POLICIES = ("error", "zero")


def _require_columns(df: pd.DataFrame, columns: Sequence[str], context: str):
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingColumnError(f"{context}: columns not found: {missing}", column=missing[0])


class DummyStep:
    """
    One-hot encode categorical columns, dropping the first level as reference.

    Args:
        columns: Columns to encode
        unseen: What to do with a level not seen at fit time. ``"error"``
            raises ``UnseenCategoryError``; ``"zero"`` encodes the row with
            all indicators at zero, the same as the reference level.
    """

    name = "dummy"

    def __init__(self, columns: Sequence[str], unseen: str = "error"):
        if unseen not in UNSEEN_POLICIES:
            raise ValueError(f"Unknown unseen policy: {unseen}. Available: {list(UNSEEN_POLICIES)}")
        self.columns = list(columns)
        self.unseen = unseen

    def fit(self, df: pd.DataFrame) -> "FittedDummyStep":
        _require_columns(df, self.columns, "dummy step")

        for col in self.columns:
            missing = df[col].isna()
            if missing.all():
                raise MissingColumnError(f"Column '{col}' has no observed levels to encode", column=col)
            if missing.any():
                raise UnseenCategoryError(
                    f"Column '{col}' has {int(missing.sum())} missing values in training data",
                    column=col,
                    value=np.nan
                )

        levels = {col: self._observed_levels(df[col]) for col in self.columns}
        for col, col_levels in levels.items():
            if len(col_levels) < 2:
                logger.warning(f"Column '{col}' has a single level {col_levels} in training data; no indicators created")

        encoder = OneHotEncoder(
            categories=[np.array(levels[col], dtype=object) for col in self.columns],
            drop="first",
            handle_unknown="error",
            sparse_output=False,
            dtype=float
        )
        encoder.fit(df[self.columns].astype(object))

        fitted = FittedDummyStep(self.columns, levels, encoder, self.unseen)
        logger.info(f"Dummy columns: {fitted.feature_names}")
        return fitted

    @staticmethod
    def _observed_levels(values: pd.Series) -> List[Any]:
        observed = set(values.dropna().unique())
        if isinstance(values.dtype, pd.CategoricalDtype):
            return [level for level in values.cat.categories if level in observed]
        return sorted(observed)


class FittedDummyStep:
    """Dummy step with the levels learned from training data."""

    def __init__(
        self,
        columns: List[str],
        levels: Dict[str, List[Any]],
        encoder: OneHotEncoder,
        unseen: str
    ):
        self.columns = columns
        self.levels = levels
        self.encoder = encoder
        self.unseen = unseen
        self.feature_names = [str(name) for name in encoder.get_feature_names_out(columns)]

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        _require_columns(df, self.columns, "dummy step")
        values = df[self.columns].astype(object)

        for col in self.columns:
            unseen_mask = ~values[col].isin(self.levels[col])
            if not unseen_mask.any():
                continue
            unseen_values = list(pd.unique(values.loc[unseen_mask, col]))
            if self.unseen == "error":
                raise UnseenCategoryError(
                    f"Column '{col}' has levels not seen during fit: {unseen_values}",
                    column=col,
                    value=unseen_values[0] if len(unseen_values) == 1 else unseen_values
                )
            logger.warning(f"Encoding unseen levels {unseen_values} of '{col}' as all-zero indicators")
            # All indicators are zero for the dropped reference level
            reference = self.levels[col][0] if self.levels[col] else None
            values.loc[unseen_mask, col] = reference

        if self.feature_names:
            encoded = pd.DataFrame(
                self.encoder.transform(values),
                columns=self.feature_names,
                index=df.index
            )
        else:
            encoded = pd.DataFrame(index=df.index)

        return pd.concat([df.drop(columns=self.columns), encoded], axis=1)


class NormalizeStep:
    """Centre and scale numerical columns to zero mean and unit variance."""

    name = "normalize"

    def __init__(self, columns: Sequence[str]):
        self.columns = list(columns)

    def fit(self, df: pd.DataFrame) -> "FittedNormalizeStep":
        _require_columns(df, self.columns, "normalize step")
        scaler = StandardScaler()
        scaler.fit(df[self.columns].to_numpy(dtype=float))
        logger.info(f"Normalized columns: {self.columns}")
        return FittedNormalizeStep(self.columns, scaler)


class FittedNormalizeStep:
    """Normalize step with the means and scales learned from training data."""

    def __init__(self, columns: List[str], scaler: StandardScaler):
        self.columns = columns
        self.scaler = scaler
        self.feature_names = list(columns)

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        _require_columns(df, self.columns, "normalize step")
        df = df.copy()
        df[self.columns] = self.scaler.transform(df[self.columns].to_numpy(dtype=float))
        return df


STEPS = {
    "dummy": DummyStep,
    "normalize": NormalizeStep,
}


class FittedRecipe:
    """A recipe whose steps have been fitted; apply it to train, test or new data."""

    def __init__(
        self,
        outcome: str,
        predictors: List[str],
        steps: List[Any],
        output_columns: List[str]
    ):
        self.outcome = outcome
        self.predictors = predictors
        self.steps = steps
        self.output_columns = output_columns

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Transform data using the fitted steps.

        Args:
            df: DataFrame with at least the predictors seen at fit time.
                Extra columns are ignored; the outcome is optional.

        Returns:
            DataFrame with ``output_columns`` followed by the outcome when present
        """
        _require_columns(df, self.predictors, "recipe")

        data = df[self.predictors]
        for step in self.steps:
            data = step.apply(data)
        data = data[self.output_columns]

        if self.outcome in df.columns:
            data = data.assign(**{self.outcome: df[self.outcome]})
        return data

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)
        logger.info(f"Saved fitted recipe to {path}")
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> "FittedRecipe":
        recipe = joblib.load(path)
        if not isinstance(recipe, FittedRecipe):
            raise TypeError(f"{path} does not hold a FittedRecipe")
        return recipe


class Recipe:
    """Ordered preprocessing steps for an outcome column."""

    def __init__(self, outcome: str, steps: Optional[List[Any]] = None):
        self.outcome = outcome
        self.steps = list(steps or [])

        for step in self.steps:
            if outcome in step.columns:
                raise ValueError(f"Step '{step.name}' must not transform the outcome '{outcome}'")

    @classmethod
    def from_config(cls, outcome: str, config: Optional[dict] = None) -> "Recipe":
        """Build a recipe from the ``recipe.steps`` configuration section."""
        config = config or get_config()
        steps = []
        for step_config in config.get("recipe", {}).get("steps", []):
            step_config = dict(step_config)
            step_name = step_config.pop("step")
            if step_name not in STEPS:
                raise ValueError(f"Unknown recipe step: {step_name}. Available: {list(STEPS.keys())}")
            steps.append(STEPS[step_name](**step_config))
        return cls(outcome, steps)

    def fit(self, train: pd.DataFrame) -> FittedRecipe:
        """
        Learn every step's parameters from the training predictors.

        Args:
            train: Training DataFrame

        Returns:
            FittedRecipe
        """
        predictors = [col for col in train.columns if col != self.outcome]
        data = train[predictors]

        fitted_steps = []
        for step in self.steps:
            fitted = step.fit(data)
            data = fitted.apply(data)
            fitted_steps.append(fitted)

        output_columns = list(data.columns)
        logger.info(f"Recipe fitted on {len(train)} rows; output columns: {output_columns}")
        return FittedRecipe(self.outcome, predictors, fitted_steps, output_columns)
