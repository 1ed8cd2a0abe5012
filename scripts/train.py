"""
Training Script
===============

Command-line script to run the churn logistic regression analysis.

Usage:
    python scripts/train.py --data WA_Fn-UseC_-Telco-Customer-Churn.csv --explore
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from churn_logit.config import get_config
from churn_logit.exceptions import ChurnAnalysisError
from churn_logit.models import ModelEvaluator
from churn_logit.pipeline import run_analysis
from churn_logit.utils import setup_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Fit and evaluate a logistic regression churn model")

    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Data file path, or name of a file in data/raw/"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the train/test split"
    )
    parser.add_argument(
        "--ratio",
        type=float,
        default=None,
        help="Fraction of rows used for training"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Probability at or above which a customer is predicted to churn"
    )
    parser.add_argument(
        "--explore",
        action="store_true",
        help="Generate exploratory summaries and charts"
    )
    parser.add_argument(
        "--track",
        action="store_true",
        help="Log the run to MLflow"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main training function."""
    args = parse_args(argv)
    config = get_config(args.config)

    # Setup logging
    log_config = config.get("logging", {})
    setup_logging(level=args.log_level or log_config.get("level", "INFO"), log_file=log_config.get("file"))
    logger.info("Starting churn analysis...")

    try:
        result = run_analysis(
            args.data,
            config=config,
            seed=args.seed,
            ratio=args.ratio,
            threshold=args.threshold,
            explore=args.explore,
            track=args.track or None,
        )
    except (ChurnAnalysisError, FileNotFoundError) as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    logger.info(f"\nMetrics:\n{ModelEvaluator.metrics_table(result.evaluation).to_string(index=False)}")
    for name, path in result.artifact_paths.items():
        logger.info(f"Saved {name} to: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
