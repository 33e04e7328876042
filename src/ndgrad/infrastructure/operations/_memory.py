"""
Layout operations: reshape, transpose and broadcast.

These operations move or replicate elements without changing their values.
Their backward rules apply the inverse layout change to the gradient.
"""

from __future__ import annotations

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._operation import Operation
from ...domain._shape import Shape, ShapeLike
from ...domain._tensor import ITensor
from .._broadcasting import broadcast_data
from .._indexing import normalize_dim


class Reshape(Operation):
    """
    Reinterpret the buffer under a new shape with the same size.

    Raises
    ------
    ShapeMismatchError
        If the new shape has a different number of elements.
    """

    def __init__(self, a: ITensor, shape: ShapeLike) -> None:
        super().__init__(a)
        self.shape = Shape.of(shape)
        if self.shape.size() != a.shape.size():
            raise ShapeMismatchError(
                "reshape", a.shape.dims, self.shape.dims, detail="sizes differ"
            )
        self.save_for_backward("shape", a.shape)

    def _forward(self) -> ITensor:
        (a,) = self.inputs
        return type(a)._from_numpy(a.data.reshape(self.shape.dims), a.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        (a,) = self.inputs
        if a.requires_grad:
            a.accumulate_grad(grad_out.reshape(self.saved("shape").dims))


class Transpose(Operation):
    """
    Swap two axes, re-materializing the buffer in row-major order.
    """

    def __init__(self, a: ITensor, dim0: int, dim1: int) -> None:
        super().__init__(a)
        self.dim0 = normalize_dim(dim0, a.shape.rank())
        self.dim1 = normalize_dim(dim1, a.shape.rank())

    def _forward(self) -> ITensor:
        (a,) = self.inputs
        arr = np.swapaxes(a.data.reshape(a.shape.dims), self.dim0, self.dim1)
        return type(a)._from_numpy(np.ascontiguousarray(arr), a.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        (a,) = self.inputs
        if a.requires_grad:
            a.accumulate_grad(grad_out.transpose(self.dim0, self.dim1))


class Broadcast(Operation):
    """
    Expand a tensor to a broadcast-compatible shape.

    Backward sum-reduces the gradient back to the input shape.
    """

    def __init__(self, a: ITensor, shape: ShapeLike) -> None:
        super().__init__(a)
        self.shape = Shape.of(shape)
        self.save_for_backward("shape", a.shape)

    def _forward(self) -> ITensor:
        (a,) = self.inputs
        data = broadcast_data(a.data, a.shape, self.shape)
        return type(a)._from_numpy(data.reshape(self.shape.dims), a.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        (a,) = self.inputs
        if a.requires_grad:
            a.accumulate_grad(grad_out.reduce_to_shape(self.saved("shape")))
