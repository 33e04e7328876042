"""
Reduction operations (sum, mean).

Both reduce either a single axis or, with ``dim=None``, every element. With
``keepdim=True`` reduced axes are kept with size 1; otherwise they are
removed (a full reduction then yields a 0-d tensor).
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ...domain._operation import Operation
from ...domain._shape import Shape
from ...domain._tensor import ITensor
from .._indexing import normalize_dim


class Sum(Operation):
    """
    Sum over one axis or all elements.

    Backward broadcasts the gradient back to the input shape (after restoring
    the reduced axis when ``keepdim`` is False).
    """

    def __init__(self, a: ITensor, dim: Optional[int] = None, keepdim: bool = False) -> None:
        super().__init__(a)
        self.dim = None if dim is None else normalize_dim(dim, a.shape.rank())
        self.keepdim = bool(keepdim)
        self.save_for_backward("shape", a.shape)

    @property
    def kept_shape(self) -> Shape:
        """Output shape with the reduced axes kept as size 1."""
        shape = self.saved("shape")
        if self.dim is None:
            return Shape((1,) * shape.rank())
        dims = list(shape.dims)
        dims[self.dim] = 1
        return Shape(dims)

    @property
    def count(self) -> int:
        """Number of input elements reduced into each output element."""
        shape = self.saved("shape")
        return shape.size() if self.dim is None else shape[self.dim]

    def _reduce(self, arr: np.ndarray, dtype: np.dtype) -> np.ndarray:
        return np.sum(arr, axis=self.dim, keepdims=self.keepdim, dtype=dtype)

    def _forward(self) -> ITensor:
        (a,) = self.inputs
        arr = a.data.reshape(a.shape.dims)
        out = np.asarray(self._reduce(arr, a.dtype.accumulator))
        return type(a)._from_numpy(out, a.dtype)

    def _grad_for_input(self, grad_out):
        (a,) = self.inputs
        return grad_out.reshape(self.kept_shape.dims).broadcast_to(a.shape)

    def _backward(self, grad_out: ITensor) -> None:
        (a,) = self.inputs
        if a.requires_grad:
            a.accumulate_grad(self._grad_for_input(grad_out))


class Mean(Sum):
    """
    Arithmetic mean over one axis or all elements.

    Backward divides the broadcast gradient by the reduced element count.
    """

    def _reduce(self, arr, dtype):
        if self.count == 0:
            raise ValueError("mean of an empty reduction is undefined")
        return np.sum(arr, axis=self.dim, keepdims=self.keepdim, dtype=np.float64) / self.count

    def _grad_for_input(self, grad_out):
        return super()._grad_for_input(grad_out).div(float(self.count))
