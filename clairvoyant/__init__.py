"""
Clairvoyant: spectral entropy ranking and price reconstruction for stocks.

Ranks symbols by the entropy of a complex-valued attention readout over the
Fourier spectrum of their prices, and fits a causal linear model that
reconstructs each price window and refines its closing price. Both models run
on a small reverse-mode automatic differentiation engine.
"""

__version__ = "0.1.0"
__author__ = "Clairvoyant Team"

from .config import ClairvoyantConfig

__all__ = ["ClairvoyantConfig"]
