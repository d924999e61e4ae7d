"""
Price Model - linear reconstruction of price windows and closing values.

Each column of ``values`` (S x N, S = W + 1) holds a symbol's price window
followed by a copy of its closing price. The model reconstructs the matrix
from itself:

    l1   = w1 . values + b1
    cost = Average(Quadratic(l1, values))

``w1`` is causal: only its lower triangle is initialized and trained, each
row scaled by 1 / sqrt(row + 1) so activation variance stays bounded down
the rows.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import torch

from ..autodiff import Graph, ParameterSet, add, average, mul, quadratic
from ..config import ClairvoyantConfig


@dataclass
class Prediction:
    """Closing price of a symbol before and after training."""

    symbol: str
    original: float
    refined: float


class PriceModel:
    """
    Price reconstruction model.

    Args:
        windows: One price window of length W per symbol
        config: Clairvoyant configuration
    """

    def __init__(self, windows: Sequence[Sequence[float]], config: ClairvoyantConfig):
        if len(windows) == 0:
            raise ValueError("PriceModel needs at least one price window")

        size = config.model_size
        for window in windows:
            if len(window) != size - 1:
                raise ValueError(f"Expected windows of length {size - 1}, got {len(window)}")

        self.config = config
        self.size = size
        self.num_symbols = len(windows)
        self.dtype = getattr(torch, config.dtype)

        self.parameters = ParameterSet(dtype=self.dtype)
        self.parameters.add('w1', size, size)
        self.parameters.add('b1', size, 1)
        self.parameters.add('values', size, self.num_symbols)

        self._initialize(torch.Generator().manual_seed(config.seed))
        self._load(windows)

        w1 = self.parameters.get('w1')
        b1 = self.parameters.get('b1')
        values = self.parameters.get('values')
        l1 = add(mul(w1, values), b1)
        self.cost = Graph(average(quadratic(l1, values)))

    def _initialize(self, generator: torch.Generator) -> None:
        size = self.size

        b1 = torch.rand(size, 1, generator=generator, dtype=self.dtype) * 2 - 1
        self.parameters['b1'].set(b1 / math.sqrt(size))

        w1 = torch.rand(size, size, generator=generator, dtype=self.dtype) * 2 - 1
        rows = torch.arange(1, size + 1, dtype=self.dtype).sqrt().unsqueeze(1)
        self.parameters['w1'].set(torch.tril(w1) / rows)

    def _load(self, windows: Sequence[Sequence[float]]) -> None:
        columns = torch.tensor([list(window) for window in windows], dtype=self.dtype)
        columns = torch.cat([columns, columns[:, -1:]], dim=1)
        self.parameters['values'].set(columns.t())

    @property
    def lower_triangle(self) -> torch.Tensor:
        """Mask of the trainable region of w1"""
        return torch.ones(self.size, self.size, dtype=torch.bool).tril()

    @property
    def close_row(self) -> torch.Tensor:
        """Mask of the trainable region of values (the duplicated closes)"""
        mask = torch.zeros(self.size, self.num_symbols, dtype=torch.bool)
        mask[-1] = True
        return mask

    def loss_and_gradients(self) -> float:
        """Zero all gradients, run forward and backward, return the total loss."""
        self.parameters.zero()
        output = self.cost.evaluate()
        return output.data.item()

    def loss(self) -> float:
        """Total loss without touching gradients."""
        return self.cost.evaluate(forward_only=True).data.item()

    def predictions(self, symbols: Optional[Sequence[str]] = None) -> List[Prediction]:
        """
        Read each symbol's original and refined closing price.

        Args:
            symbols: Labels for the columns (defaults to column indices)
        """
        if symbols is None:
            symbols = [str(i) for i in range(self.num_symbols)]
        values = self.parameters['values'].data
        return [
            Prediction(symbol=symbol, original=values[-2, i].item(), refined=values[-1, i].item())
            for i, symbol in enumerate(symbols)
        ]
