"""Utility functions for Clairvoyant"""

from .logging_utils import setup_logger, MetricsLogger
from .plotting import plot_loss_curve
from .report import scores_frame, format_scores, format_predictions

__all__ = [
    "setup_logger",
    "MetricsLogger",
    "plot_loss_curve",
    "scores_frame",
    "format_scores",
    "format_predictions",
]
