"""
Spectral Featurizer - normalized discrete Fourier transform of price windows.

For a window x of length W:

    1. x / max(x)            values in (0, 1]
    2. DFT of the result     W complex bins
    3. every bin / W

The transform is deterministic and side-effect free.
"""

import logging
import torch
from typing import List, Sequence, Tuple

from .symbols import SymbolRecord

logger = logging.getLogger(__name__)


class DataQualityError(ValueError):
    """Raised when a price window cannot be featurized."""


class SpectralFeaturizer:
    """
    Maps price windows to spectral features.

    Args:
        window_length: Window length W
    """

    def __init__(self, window_length: int = 251):
        self.window_length = window_length

    def transform(self, prices: Sequence[float]) -> torch.Tensor:
        """
        Featurize one price window.

        Args:
            prices: Exactly W prices

        Returns:
            Complex128 tensor of shape (W,)
        """
        series = torch.as_tensor(prices, dtype=torch.float64)
        if series.shape != (self.window_length,):
            raise ValueError(
                f"Expected {self.window_length} prices, got shape {tuple(series.shape)}"
            )

        peak = series.max()
        if peak == 0:
            raise DataQualityError("Price window has a maximum of zero")

        return torch.fft.fft(series / peak) / self.window_length

    def inverse(self, features: torch.Tensor) -> torch.Tensor:
        """Recover the normalized window from its features."""
        return torch.fft.ifft(features * self.window_length).real

    def feature_matrix(
        self,
        records: Sequence[SymbolRecord],
    ) -> Tuple[torch.Tensor, List[SymbolRecord]]:
        """
        Stack the features of every record as columns of a W x N matrix.

        Records that fail featurization are logged and skipped.

        Returns:
            features: Complex128 tensor (W, N)
            kept: Records matching the columns, in input order
        """
        columns, kept = [], []
        for record in records:
            try:
                columns.append(self.transform(record.prices))
            except DataQualityError as e:
                logger.warning(f"Skipping {record.symbol}: {e}")
                continue
            kept.append(record)

        if not columns:
            return torch.zeros(self.window_length, 0, dtype=torch.complex128), kept

        return torch.stack(columns, dim=1), kept
