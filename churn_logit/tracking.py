"""
Experiment Tracking
===================

Logs an analysis run's parameters, metrics and artifacts to MLflow.
"""

import math
from typing import Dict, Optional

import mlflow
from loguru import logger

from churn_logit.config import MLFLOW_DIR, get_config
from churn_logit.utils.helpers import get_timestamp


def setup_mlflow(config: Optional[dict] = None) -> str:
    """
    Point MLflow at the configured tracking store and experiment.

    Relative tracking URIs are resolved under MLFLOW_DIR.

    Returns:
        Tracking URI in use
    """
    config = config or get_config()
    mlflow_config = config.get("mlflow", {})

    tracking_uri = mlflow_config.get("tracking_uri", "mlflow_runs")
    if "://" not in tracking_uri and not tracking_uri.startswith("sqlite:"):
        tracking_uri = f"file://{MLFLOW_DIR / tracking_uri}"
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = mlflow_config.get("experiment_name", "churn_logistic_regression")

    # Create experiment if it doesn't exist
    experiment = mlflow.get_experiment_by_name(experiment_name)
    if experiment is None:
        mlflow.create_experiment(experiment_name)
    mlflow.set_experiment(experiment_name)

    logger.info(f"MLflow tracking URI: {tracking_uri}")
    logger.info(f"MLflow experiment: {experiment_name}")
    return tracking_uri


def log_run(result, config: Optional[dict] = None) -> str:
    """
    Log one analysis run.

    Args:
        result: AnalysisResult from ``run_analysis``
        config: Configuration dictionary

    Returns:
        MLflow run id
    """
    config = config or get_config()
    setup_mlflow(config)

    evaluation = result.evaluation
    cm = evaluation.confusion
    params: Dict[str, object] = {
        "seed": result.split.seed,
        "split_ratio": result.split.ratio,
        "threshold": evaluation.threshold,
        "features": ",".join(result.model.feature_names),
        **{f"model_{k}": v for k, v in config.get("model", {}).get("params", {}).items()},
    }

    with mlflow.start_run(run_name=f"logistic_regression_{get_timestamp()}") as run:
        mlflow.log_params(params)
        mlflow.set_tag("model_type", "logistic_regression")

        # NaN rates are undefined, not zero
        mlflow.log_metrics({k: v for k, v in evaluation.metrics().items() if not math.isnan(v)})
        mlflow.log_metrics({"tp": cm.tp, "fp": cm.fp, "fn": cm.fn, "tn": cm.tn})

        for path in result.artifact_paths.values():
            mlflow.log_artifact(str(path))

        logger.info(f"Logged run {run.info.run_id} to MLflow")
        return run.info.run_id
