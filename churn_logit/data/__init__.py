"""Data module for loading and splitting data."""

from .data_loader import DataLoader, clean_names
from .outcome import BinaryOutcome
from .splitter import Split, split_data

__all__ = ["DataLoader", "clean_names", "BinaryOutcome", "Split", "split_data"]
