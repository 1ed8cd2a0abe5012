"""
Prediction Script
=================

Score unlabeled customers with a saved recipe and model.

Usage:
    python scripts/predict.py new_customers.csv --output predictions.csv
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from churn_logit.config import get_config
from churn_logit.data import DataLoader
from churn_logit.exceptions import ChurnAnalysisError
from churn_logit.pipeline import load_artifacts, score_new_data
from churn_logit.utils import setup_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Predict churn for new customers")

    parser.add_argument("data", type=str, help="CSV of customers to score")
    parser.add_argument("--output", type=str, default="predictions.csv", help="Where to write predictions")
    parser.add_argument("--models-dir", type=str, default=None, help="Directory holding saved artifacts")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML configuration file")
    parser.add_argument("--threshold", type=float, default=None, help="Classification threshold")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Score a file of customers."""
    args = parse_args(argv)
    setup_logging(level=args.log_level)
    config = get_config(args.config)

    try:
        recipe, model = load_artifacts(args.models_dir)
        raw = DataLoader(config).load_raw_data(args.data)
        predictions = score_new_data(raw, recipe, model, config=config, threshold=args.threshold)
    except (ChurnAnalysisError, FileNotFoundError) as e:
        logger.error(f"Scoring failed: {e}")
        return 1

    predictions.to_csv(args.output, index=False)
    logger.info(f"Predictions written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
