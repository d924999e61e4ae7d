"""Optimizers for Clairvoyant"""

from .heavy_ball import ClippedHeavyBall

__all__ = [
    "ClippedHeavyBall",
]
