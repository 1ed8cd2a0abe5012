"""Binary outcome definition with an explicit positive level."""

from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from churn_logit.config import get_config


@dataclass(frozen=True)
class BinaryOutcome:
    """Outcome column and its two levels, positive first."""

    column: str
    positive: str
    negative: str

    def __post_init__(self):
        if self.positive == self.negative:
            raise ValueError(f"Outcome levels must differ, got {self.positive!r} twice")

    @property
    def levels(self) -> Tuple[str, str]:
        return (self.positive, self.negative)

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "BinaryOutcome":
        config = config or get_config()
        outcome_config = config.get("data", {}).get("outcome", {})
        return cls(
            column=outcome_config.get("column", "churn"),
            positive=str(outcome_config.get("positive", "Yes")),
            negative=str(outcome_config.get("negative", "No")),
        )

    def as_category(self, values: pd.Series) -> pd.Series:
        """Cast values to a category ordered positive-first; other values become missing."""
        return pd.Series(
            pd.Categorical(values.where(values.isin(self.levels)), categories=list(self.levels)),
            index=values.index,
            name=values.name,
        )

    def is_positive(self, values: pd.Series) -> pd.Series:
        return values.astype(object) == self.positive
