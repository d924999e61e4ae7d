"""
Operator library.

Each operator kind is a class with three methods:

    infer_shape(*shapes)              validate input shapes, return output shape
    forward(*inputs) -> output        compute the output buffer
    backward(grad, inputs, output)    return one gradient per input (or None)

The lower-case builders (``add``, ``mul``, ...) wrap an operator instance in
an ``Apply`` node. Transposes are plain (never conjugating), for real and
complex buffers alike.
"""

import torch
from typing import Optional, Sequence, Tuple

from .graph import Apply, Node
from .tensor import ShapeError


Shape = Tuple[int, ...]


class Operator:
    """Base class of graph operators."""

    name = 'op'

    def infer_shape(self, *shapes: Shape) -> Shape:
        raise NotImplementedError

    def forward(self, *inputs: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError

    def backward(
        self,
        grad: torch.Tensor,
        inputs: Sequence[torch.Tensor],
        output: torch.Tensor,
    ) -> Tuple[Optional[torch.Tensor], ...]:
        raise NotImplementedError


def _check_matrix(name: str, shape: Shape) -> None:
    if len(shape) != 2:
        raise ShapeError(f"{name} expects 2-D inputs, got shape {shape}")


class Add(Operator):
    """Elementwise sum; ``b`` may be a single column broadcast across ``a``."""

    name = 'add'

    def infer_shape(self, a: Shape, b: Shape) -> Shape:
        _check_matrix(self.name, a)
        _check_matrix(self.name, b)
        if a != b and not (b[0] == a[0] and b[1] == 1):
            raise ShapeError(f"add: cannot broadcast {b} onto {a}")
        return a

    def forward(self, a, b):
        return a + b

    def backward(self, grad, inputs, output):
        a, b = inputs
        if b.shape != a.shape:
            return grad, grad.sum(dim=1, keepdim=True)
        return grad, grad


class Mul(Operator):
    """Matrix product (m, n) x (n, p) -> (m, p)."""

    name = 'mul'

    def infer_shape(self, a: Shape, b: Shape) -> Shape:
        _check_matrix(self.name, a)
        _check_matrix(self.name, b)
        if a[1] != b[0]:
            raise ShapeError(f"mul: inner dimensions differ, {a} x {b}")
        return (a[0], b[1])

    def forward(self, a, b):
        return a @ b

    def backward(self, grad, inputs, output):
        a, b = inputs
        return grad @ b.t(), a.t() @ grad


class Transpose(Operator):
    """Structural transpose."""

    name = 'transpose'

    def infer_shape(self, a: Shape) -> Shape:
        _check_matrix(self.name, a)
        return (a[1], a[0])

    def forward(self, a):
        return a.t().contiguous()

    def backward(self, grad, inputs, output):
        return (grad.t(),)


class Quadratic(Operator):
    """Elementwise squared error between ``a`` and ``target``."""

    name = 'quadratic'

    def infer_shape(self, a: Shape, target: Shape) -> Shape:
        _check_matrix(self.name, a)
        if a != target:
            raise ShapeError(f"quadratic: shapes differ, {a} vs {target}")
        return a

    def forward(self, a, target):
        difference = a - target
        return difference * difference

    def backward(self, grad, inputs, output):
        a, target = inputs
        d = 2 * (a - target) * grad
        return d, -d


class Average(Operator):
    """Mean over all elements, as a 1x1 tensor."""

    name = 'average'

    def infer_shape(self, a: Shape) -> Shape:
        _check_matrix(self.name, a)
        return (1, 1)

    def forward(self, a):
        return a.mean().reshape(1, 1)

    def backward(self, grad, inputs, output):
        (a,) = inputs
        return (torch.ones_like(a) * (grad / a.numel()),)


class Entropy(Operator):
    """
    Total surprise -sum(a * log(a)) as a 1x1 tensor.

    Uses the principal logarithm, so complex inputs give a complex result.
    Zero entries contribute zero.
    """

    name = 'entropy'

    def infer_shape(self, a: Shape) -> Shape:
        _check_matrix(self.name, a)
        return (1, 1)

    def forward(self, a):
        terms = torch.where(a == 0, torch.zeros_like(a), a * torch.log(a))
        return -terms.sum().reshape(1, 1)

    def backward(self, grad, inputs, output):
        (a,) = inputs
        d = -(torch.log(a) + 1) * grad
        return (torch.where(a == 0, torch.zeros_like(d), d),)


class SphericalSoftmax(Operator):
    """
    Spherical softmax (https://arxiv.org/abs/1511.05042).

    Each vector along ``axis`` becomes (a_j^2 + eps) / sum_k (a_k^2 + eps).
    With the default eps of zero an all-zero vector produces NaN.

    The backward pass keeps only the numerator term of the quotient rule:

        a.grad_j += d_j * 2 * a_j * (sum - (a_j^2 + eps)) / sum^2

    The cross term -d_j * c_j * 2 * a_j / sum is not applied.
    """

    name = 'spherical_softmax'

    def __init__(self, axis: int = -1, epsilon: float = 0.0):
        if axis not in (0, 1, -1):
            raise ValueError(f"Invalid axis: {axis}")
        self.axis = axis
        self.epsilon = epsilon

    def infer_shape(self, a: Shape) -> Shape:
        _check_matrix(self.name, a)
        return a

    def _terms(self, a):
        values = a * a + self.epsilon
        return values, values.sum(dim=self.axis, keepdim=True)

    def forward(self, a):
        values, sums = self._terms(a)
        return values / sums

    def backward(self, grad, inputs, output):
        (a,) = inputs
        values, sums = self._terms(a)
        return (grad * (2 * a * (sums - values)) / (sums * sums),)


def add(a: Node, b: Node) -> Apply:
    return Apply(Add(), a, b)


def mul(a: Node, b: Node) -> Apply:
    return Apply(Mul(), a, b)


def transpose(a: Node) -> Apply:
    return Apply(Transpose(), a)


def quadratic(a: Node, target: Node) -> Apply:
    return Apply(Quadratic(), a, target)


def average(a: Node) -> Apply:
    return Apply(Average(), a)


def entropy(a: Node) -> Apply:
    return Apply(Entropy(), a)


def spherical_softmax(a: Node, axis: int = -1, epsilon: float = 0.0) -> Apply:
    return Apply(SphericalSoftmax(axis=axis, epsilon=epsilon), a)
