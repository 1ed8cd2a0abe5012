"""
Data Loader Module
==================

Loads the customer churn file, normalises its schema and casts the
columns the analysis uses.
"""

import re
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from loguru import logger

from churn_logit.config import RAW_DATA_DIR, get_config
from churn_logit.data.outcome import BinaryOutcome
from churn_logit.exceptions import ChurnAnalysisError, MissingColumnError

_SENIOR_CODES = {1: "Yes", 0: "No", "1": "Yes", "0": "No", "Yes": "Yes", "No": "No"}


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalise column names to snake_case.

    ``customerID`` becomes ``customer_id``, ``MonthlyCharges`` becomes
    ``monthly_charges``.
    """
    def _snake(name: str) -> str:
        name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", str(name).strip())
        name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
        name = re.sub(r"[^0-9a-zA-Z]+", "_", name)
        return name.strip("_").lower()

    return df.rename(columns=_snake)


class DataLoader:
    """Load and prepare the churn dataset."""

    def __init__(self, config: Optional[dict] = None):
        """
        Initialize DataLoader.

        Args:
            config: Configuration dictionary. If None, loads from config.yaml
        """
        self.config = config or get_config()
        self.data_config = self.config.get("data", {})
        self.raw_data_path = RAW_DATA_DIR
        self.outcome = BinaryOutcome.from_config(self.config)

        predictors = self.data_config.get("predictors", {})
        self.categorical_features = predictors.get("categorical", [])
        self.numerical_features = predictors.get("numerical", [])

    @property
    def predictors(self) -> List[str]:
        return self.categorical_features + self.numerical_features

    def load_raw_data(
        self,
        filename: Optional[Union[str, Path]] = None,
        **kwargs
    ) -> pd.DataFrame:
        """
        Load raw data from file.

        Args:
            filename: Path to the data file, or a name inside data/raw/
            **kwargs: Additional arguments to pass to the pandas reader

        Returns:
            DataFrame containing raw data
        """
        filename = filename or self.data_config.get("raw_file", "telco_customer_churn.csv")
        file_path = Path(filename)
        if not file_path.exists():
            file_path = self.raw_data_path / filename

        if not file_path.exists():
            logger.error(f"Data file not found: {file_path}")
            raise FileNotFoundError(f"Data file not found: {file_path}")

        logger.info(f"Loading data from {file_path}")

        # Load based on file extension
        ext = file_path.suffix.lower()
        if ext == ".csv":
            df = pd.read_csv(file_path, **kwargs)
        elif ext in [".xlsx", ".xls"]:
            df = pd.read_excel(file_path, **kwargs)
        elif ext == ".parquet":
            df = pd.read_parquet(file_path, **kwargs)
        else:
            raise ValueError(f"Unsupported file format: {ext}")

        logger.info(f"Loaded {len(df)} rows and {len(df.columns)} columns")
        return df

    def prepare(self, df: pd.DataFrame, require_outcome: bool = True) -> pd.DataFrame:
        """
        Normalise names, select the analysis columns and cast their types.

        Args:
            df: Raw DataFrame
            require_outcome: Whether the outcome column must be present.
                Scoring unlabeled customers passes False.

        Returns:
            DataFrame with the outcome (when present) and the predictors
        """
        df = clean_names(df)
        df = df.rename(columns=self.data_config.get("rename", {}))

        outcome_col = self.outcome.column
        has_outcome = outcome_col in df.columns
        if require_outcome and not has_outcome:
            raise MissingColumnError(f"Outcome column '{outcome_col}' not found", column=outcome_col)

        missing = [col for col in self.predictors if col not in df.columns]
        if missing:
            raise MissingColumnError(f"Predictor columns not found: {missing}", column=missing[0])

        selected = ([outcome_col] if has_outcome else []) + self.predictors
        df = df[selected].copy()

        senior = self.data_config.get("senior_citizen", {})
        senior_col = senior.get("column", "is_senior_citizen")
        if senior_col in df.columns:
            levels = senior.get("levels", ["Yes", "No"])
            recoded = df[senior_col].map(_SENIOR_CODES)
            unmapped = recoded.isna() & df[senior_col].notna()
            if unmapped.any():
                logger.warning(
                    f"Unrecognised '{senior_col}' codes {list(pd.unique(df.loc[unmapped, senior_col]))} treated as missing"
                )
            df[senior_col] = pd.Categorical(recoded, categories=levels)

        for col in self.numerical_features:
            df[col] = self._to_numeric(df[col])

        for col in self.categorical_features:
            if col != senior_col:
                df[col] = df[col].astype("category")

        if has_outcome:
            df[outcome_col] = self.outcome.as_category(df[outcome_col])

        # Rows without an outcome cannot be used for fitting
        if has_outcome and require_outcome:
            unusable = df[outcome_col].isna()
            if unusable.all():
                raise MissingColumnError(
                    f"Outcome column '{outcome_col}' has no {list(self.outcome.levels)} values",
                    column=outcome_col
                )
            if unusable.any():
                logger.warning(f"Dropping {int(unusable.sum())} rows without a usable '{outcome_col}' value")
                df = df[~unusable]

        logger.info(f"Prepared {len(df)} rows with columns {list(df.columns)}")
        return df

    def load_customers(
        self,
        filename: Optional[Union[str, Path]] = None,
        require_outcome: bool = True
    ) -> pd.DataFrame:
        """Load a raw file and prepare it in one step."""
        return self.prepare(self.load_raw_data(filename), require_outcome=require_outcome)

    def validate_data(self, df: pd.DataFrame) -> dict:
        """
        Validate data quality.

        Args:
            df: DataFrame to validate

        Returns:
            Dictionary with validation results
        """
        validation_results = {
            "total_rows": len(df),
            "total_columns": len(df.columns),
            "missing_values": df.isnull().sum().to_dict(),
            "missing_percentage": (df.isnull().sum() / max(len(df), 1) * 100).to_dict(),
            "duplicates": int(df.duplicated().sum()),
            "dtypes": df.dtypes.astype(str).to_dict(),
        }

        # Check for target column
        target_col = self.outcome.column
        if target_col in df.columns:
            validation_results["target_distribution"] = df[target_col].value_counts().to_dict()
            validation_results["target_balance"] = df[target_col].value_counts(normalize=True).to_dict()

        return validation_results

    @staticmethod
    def _to_numeric(values: pd.Series) -> pd.Series:
        try:
            numeric = pd.to_numeric(values)
        except (TypeError, ValueError) as e:
            raise ChurnAnalysisError(f"Column '{values.name}' is not numeric: {e}", column=values.name) from e

        if (numeric < 0).any():
            bad = numeric[numeric < 0].iloc[0]
            raise ChurnAnalysisError(
                f"Column '{values.name}' has negative values, e.g. {bad}",
                column=values.name,
                value=bad
            )
        return numeric
