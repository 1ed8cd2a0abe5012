"""
Data Splitter Module
====================

Stratified, seeded train/test partitioning.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import pandas as pd
from loguru import logger
from sklearn.model_selection import train_test_split

from churn_logit.exceptions import MissingColumnError


@dataclass(frozen=True, eq=False)
class Split:
    """A train/test partition created once per run."""

    train: pd.DataFrame
    test: pd.DataFrame
    ratio: float
    seed: int
    strata: Optional[str] = None

    def summary(self, positive: Optional[str] = None) -> Dict[str, float]:
        """Sizes of both subsets and, given the positive level, their positive rates."""
        total = len(self.train) + len(self.test)
        summary = {
            "train_rows": len(self.train),
            "test_rows": len(self.test),
            "train_fraction": len(self.train) / total,
        }
        if positive is not None and self.strata is not None:
            for name, subset in (("train", self.train), ("test", self.test)):
                summary[f"{name}_positive_rate"] = float((subset[self.strata] == positive).mean())
        return summary


def split_data(
    df: pd.DataFrame,
    ratio: float = 0.7,
    seed: int = 789,
    strata: Optional[str] = None
) -> Split:
    """
    Split data into train and test sets.

    Args:
        df: Input DataFrame
        ratio: Proportion of rows assigned to the training set
        seed: Random seed; the same seed and input give the same partition
        strata: Column to stratify on, usually the outcome

    Returns:
        Split holding independent train and test copies
    """
    if not 0 < ratio < 1:
        raise ValueError(f"Split ratio must lie in (0, 1), got {ratio}")

    stratify = None
    if strata is not None:
        if strata not in df.columns:
            raise MissingColumnError(f"Stratification column '{strata}' not found", column=strata)
        stratify = df[strata]

    train, test = train_test_split(
        df,
        train_size=ratio,
        random_state=seed,
        stratify=stratify
    )

    logger.info(f"Train set: {len(train)} samples")
    logger.info(f"Test set: {len(test)} samples")

    return Split(train=train.copy(), test=test.copy(), ratio=ratio, seed=seed, strata=strata)
