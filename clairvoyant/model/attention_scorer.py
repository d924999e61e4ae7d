"""
Attention Scorer - ranks symbols by the entropy of an attention readout.

The spectral features of all symbols form the columns of X (W x N). For each
symbol the query is set to its own features and a fixed, untrained graph is
evaluated forward-only:

    layer1 = SphericalSoftmax(X^T . query)          (N x 1) weight per symbol
    layer2 = SphericalSoftmax((layer1^T . X^T)^T)   (W x 1) re-normalized spectrum
    cost   = Entropy(layer2)                        complex scalar

The magnitude of the cost is the symbol's entropy score and its angle the
phase. Scores are sorted descending by magnitude; ties keep input order.
Magnitudes are compared at RANK_DECIMALS decimal places, so values that
agree up to rounding noise count as ties.
"""

import cmath
from dataclasses import dataclass
from typing import List, Sequence

import torch

from ..autodiff import Graph, ParameterSet, entropy, mul, spherical_softmax, transpose
from ..data.symbols import SymbolRecord

RANK_DECIMALS = 12


@dataclass
class Score:
    """Ranking entry for one symbol."""

    symbol: str
    name: str
    entropy: float
    phase: float
    change: float


class AttentionScorer:
    """
    Forward-only attention/entropy scorer.

    Args:
        features: Complex tensor (W, N), one spectral feature per column
        epsilon: Spherical softmax stabilizer
    """

    def __init__(self, features: torch.Tensor, epsilon: float = 0.0):
        if features.dim() != 2:
            raise ValueError(f"Expected a (W, N) feature matrix, got shape {tuple(features.shape)}")

        width, length = features.shape
        self.width = width
        self.length = length

        self.parameters = ParameterSet(dtype=torch.complex128)
        self.parameters.add('points', width, length).set(features)
        self.parameters.add('input', width, 1)

        self.graph = Graph(self._build(epsilon))

    def _build(self, epsilon: float):
        points = self.parameters.get('points')
        query = self.parameters.get('input')

        layer1 = spherical_softmax(mul(transpose(points), query), axis=0, epsilon=epsilon)
        layer2 = spherical_softmax(
            transpose(mul(transpose(layer1), transpose(points))),
            axis=0,
            epsilon=epsilon,
        )
        return entropy(layer2)

    def score(self, index: int) -> complex:
        """Entropy of the attention readout when symbol ``index`` is the query."""
        points = self.parameters['points']
        self.parameters['input'].set(points.data[:, index:index + 1])
        output = self.graph.evaluate(forward_only=True)
        return complex(output.data[0, 0].item())

    def rank(self, records: Sequence[SymbolRecord]) -> List[Score]:
        """
        Score every symbol and sort descending by entropy magnitude.

        Args:
            records: One record per feature column, in column order
        """
        if len(records) != self.length:
            raise ValueError(f"Expected {self.length} records, got {len(records)}")

        scores = []
        for index, record in enumerate(records):
            value = self.score(index)
            scores.append(Score(
                symbol=record.symbol,
                name=record.description,
                entropy=abs(value),
                phase=cmath.phase(value),
                change=record.change,
            ))

        return sorted(scores, key=lambda s: round(s.entropy, RANK_DECIMALS), reverse=True)
