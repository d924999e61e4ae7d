"""Training infrastructure for Clairvoyant"""

from .trainer import PriceModelTrainer, TrainingResult

__all__ = [
    "PriceModelTrainer",
    "TrainingResult",
]
