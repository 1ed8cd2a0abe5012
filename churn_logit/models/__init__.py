"""Models module for training and evaluation."""

from .trainer import ChurnModel, ModelTrainer
from .evaluator import ConfusionMatrix, EvaluationResult, ModelEvaluator

__all__ = ["ChurnModel", "ModelTrainer", "ConfusionMatrix", "EvaluationResult", "ModelEvaluator"]
