"""Reverse-mode automatic differentiation for Clairvoyant"""

from .tensor import Tensor, ShapeError
from .params import ParameterSet
from .graph import Graph, Leaf, Apply
from .ops import (
    Add,
    Mul,
    Transpose,
    Quadratic,
    Average,
    Entropy,
    SphericalSoftmax,
    add,
    mul,
    transpose,
    quadratic,
    average,
    entropy,
    spherical_softmax,
)

__all__ = [
    "Tensor",
    "ShapeError",
    "ParameterSet",
    "Graph",
    "Leaf",
    "Apply",
    "Add",
    "Mul",
    "Transpose",
    "Quadratic",
    "Average",
    "Entropy",
    "SphericalSoftmax",
    "add",
    "mul",
    "transpose",
    "quadratic",
    "average",
    "entropy",
    "spherical_softmax",
]
