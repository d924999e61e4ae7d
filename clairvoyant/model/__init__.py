"""Model components for Clairvoyant"""

from .attention_scorer import AttentionScorer, Score
from .price_model import PriceModel, Prediction

__all__ = [
    "AttentionScorer",
    "Score",
    "PriceModel",
    "Prediction",
]
