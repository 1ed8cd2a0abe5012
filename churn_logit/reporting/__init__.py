"""Reporting module for exploratory analysis."""

from .explorer import ExploratoryReporter

__all__ = ["ExploratoryReporter"]
