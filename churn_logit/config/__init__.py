"""Configuration module for the churn logistic regression analysis."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml

PACKAGE_DIR = Path(__file__).parent.parent.absolute()

# Project root directory
ROOT_DIR = Path(os.environ.get("CHURN_LOGIT_HOME", PACKAGE_DIR.parent)).absolute()

# Load configuration
CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(path: Optional[Union[str, Path]] = None) -> dict:
    """Load configuration from YAML file."""
    path = path or os.environ.get("CHURN_LOGIT_CONFIG") or CONFIG_PATH
    with open(path, "r") as f:
        config = yaml.safe_load(f)
    return config


def get_config(path: Optional[Union[str, Path]] = None) -> dict:
    """Get configuration dictionary."""
    return load_config(path)


# Export commonly used paths
DATA_DIR = ROOT_DIR / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
MODELS_DIR = ROOT_DIR / "models" / "saved"
MLFLOW_DIR = ROOT_DIR / "models" / "mlflow"
REPORTS_DIR = ROOT_DIR / "reports"
FIGURES_DIR = REPORTS_DIR / "figures"
