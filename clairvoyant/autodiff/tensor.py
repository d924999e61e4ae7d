"""
Tensor - a named, fixed-shape buffer with a parallel gradient buffer.

Data and gradients are 2-D torch tensors, so every operator works with
shapes and strides instead of flat offsets. Autograd is never used: the
gradient buffer is filled by the reverse pass of ``Graph``.
"""

import torch
from typing import Optional, Sequence, Tuple


class ShapeError(ValueError):
    """Raised when operator inputs or tensor data have incompatible shapes."""


class Tensor:
    """
    Named numeric buffer with a gradient of the same shape.

    Args:
        name: Tensor name
        shape: (rows, columns)
        dtype: Real or complex torch dtype
        data: Optional initial data (must match ``shape``)
    """

    def __init__(
        self,
        name: str,
        shape: Sequence[int],
        dtype: torch.dtype = torch.float32,
        data: Optional[torch.Tensor] = None,
    ):
        self.name = name
        self.shape: Tuple[int, ...] = tuple(int(s) for s in shape)

        if data is None:
            data = torch.zeros(self.shape, dtype=dtype)
        elif tuple(data.shape) != self.shape:
            raise ShapeError(
                f"Tensor '{name}' expects shape {self.shape}, got {tuple(data.shape)}"
            )

        self.data = data
        self.grad = torch.zeros_like(data)

    @property
    def dtype(self) -> torch.dtype:
        return self.data.dtype

    def set(self, values) -> None:
        """Copy ``values`` into the data buffer, keeping shape and dtype."""
        values = torch.as_tensor(values, dtype=self.dtype)
        if values.numel() != self.data.numel():
            raise ShapeError(
                f"Tensor '{self.name}' holds {self.data.numel()} values, got {values.numel()}"
            )
        self.data.copy_(values.reshape(self.shape))

    def zero_grad(self) -> None:
        self.grad.zero_()

    def __repr__(self) -> str:
        return f"Tensor(name={self.name!r}, shape={self.shape}, dtype={self.dtype})"
