"""
ParameterSet - named parameter tensors that persist across iterations.
"""

import torch
from typing import Dict, Iterator, List

from .graph import Leaf
from .tensor import Tensor


class ParameterSet:
    """
    Mapping from name to parameter tensor.

    ``get`` returns the graph leaf for a parameter; the same leaf is returned
    on every call so an expression can use one parameter in several places.

    Args:
        dtype: dtype of every tensor in the set
    """

    def __init__(self, dtype: torch.dtype = torch.float32):
        self.dtype = dtype
        self.weights: List[Tensor] = []
        self.by_name: Dict[str, Tensor] = {}
        self._leaves: Dict[str, Leaf] = {}

    def add(self, name: str, *shape: int) -> Tensor:
        """Declare a zero-initialized parameter."""
        if name in self.by_name:
            raise ValueError(f"Duplicate parameter: {name}")
        tensor = Tensor(name, shape, dtype=self.dtype)
        self.weights.append(tensor)
        self.by_name[name] = tensor
        return tensor

    def get(self, name: str) -> Leaf:
        if name not in self._leaves:
            self._leaves[name] = Leaf(self.by_name[name])
        return self._leaves[name]

    def zero(self) -> None:
        """Reset every gradient buffer to zero."""
        for tensor in self.weights:
            tensor.zero_grad()

    def __getitem__(self, name: str) -> Tensor:
        return self.by_name[name]

    def __contains__(self, name: str) -> bool:
        return name in self.by_name

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self.weights)

    def __len__(self) -> int:
        return len(self.weights)
