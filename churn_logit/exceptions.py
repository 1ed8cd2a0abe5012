"""
Exceptions
==========

Errors raised by the analysis pipeline. Each one is terminal for a run and
carries the column and/or value that caused it.
"""

from typing import Any, Optional


class ChurnAnalysisError(ValueError):
    """Base class for analysis errors."""

    def __init__(self, message: str, column: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.column = column
        self.value = value


class MissingColumnError(ChurnAnalysisError):
    """A required column is absent, or holds no usable values."""


class UnseenCategoryError(ChurnAnalysisError):
    """A category level was not present when the recipe was fitted."""


class DegenerateResponseError(ChurnAnalysisError):
    """The model cannot be fitted: single-class response, collinear design or separation."""


class UndefinedMetricError(ChurnAnalysisError):
    """A rate metric has an empty denominator."""
