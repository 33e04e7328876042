"""
Elementwise binary arithmetic operations.

Every operation in this module broadcasts both operands to their joint
shape with `broadcast_data`, computes in a wide accumulator dtype and casts
the result to the left operand's dtype. Backward rules work on the detached
operand snapshots taken at construction and reduce each gradient back to its
operand's pre-broadcast shape before accumulating it. A local gradient is
only built for operands that require gradients.
"""

from __future__ import annotations

from abc import abstractmethod

import numpy as np

from ...domain._operation import Operation
from ...domain._shape import Shape
from ...domain._tensor import ITensor
from .._broadcasting import broadcast_data, broadcast_shapes


def _wide_dtype(*arrays: np.ndarray) -> np.dtype:
    if any(arr.dtype.kind == "f" for arr in arrays):
        return np.dtype(np.float64)
    return np.dtype(np.int64)


class BinaryOperation(Operation):
    """
    Base class for broadcasting binary operations.

    Subclasses implement `_compute(a, b)` on broadcast numpy arrays and
    `_backward`.

    Parameters
    ----------
    a : ITensor
        Left operand. Its dtype is the output dtype.
    b : ITensor
        Right operand. Python scalars are lifted to tensors by the caller.
    """

    def __init__(self, a: ITensor, b: ITensor) -> None:
        super().__init__(a, b)
        self.out_shape: Shape = broadcast_shapes(a.shape, b.shape)
        self.save_for_backward("a", a.detach())
        self.save_for_backward("b", b.detach())

    @abstractmethod
    def _compute(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Compute the result on operands already broadcast to `out_shape`."""
        ...

    def _forward(self) -> ITensor:
        a, b = self.inputs
        xa = broadcast_data(a.data, a.shape, self.out_shape)
        xb = broadcast_data(b.data, b.shape, self.out_shape)
        wide = _wide_dtype(xa, xb)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            out = self._compute(xa.astype(wide), xb.astype(wide))
        return type(a)._from_numpy(out.reshape(self.out_shape.dims), a.dtype)

    def _needs_grad(self, index: int) -> bool:
        return self.inputs[index].requires_grad

    def _accumulate(self, index: int, grad: ITensor) -> None:
        target = self.inputs[index]
        target.accumulate_grad(grad.reduce_to_shape(target.shape))


class Add(BinaryOperation):
    """Elementwise sum ``a + b``."""

    def _compute(self, a, b):
        return a + b

    def _backward(self, grad_out: ITensor) -> None:
        if self._needs_grad(0):
            self._accumulate(0, grad_out)
        if self._needs_grad(1):
            self._accumulate(1, grad_out)


class Sub(BinaryOperation):
    """Elementwise difference ``a - b``."""

    def _compute(self, a, b):
        return a - b

    def _backward(self, grad_out: ITensor) -> None:
        if self._needs_grad(0):
            self._accumulate(0, grad_out)
        if self._needs_grad(1):
            self._accumulate(1, grad_out.neg())


class Mul(BinaryOperation):
    """Elementwise product ``a * b``."""

    def _compute(self, a, b):
        return a * b

    def _backward(self, grad_out: ITensor) -> None:
        a, b = self.saved("a"), self.saved("b")
        if self._needs_grad(0):
            self._accumulate(0, grad_out.mul(b))
        if self._needs_grad(1):
            self._accumulate(1, grad_out.mul(a))


class Div(BinaryOperation):
    """
    Elementwise division ``a / b``.

    Backward:

        d/da = grad / b
        d/db = -grad * a / b**2
    """

    def _compute(self, a, b):
        return a / b

    def _backward(self, grad_out: ITensor) -> None:
        a, b = self.saved("a"), self.saved("b")
        if self._needs_grad(0):
            self._accumulate(0, grad_out.div(b))
        if self._needs_grad(1):
            self._accumulate(1, grad_out.mul(a).div(b.mul(b)).neg())


class Pow(BinaryOperation):
    """
    Elementwise power ``a ** b``.

    Backward:

        d/da = grad * b * a**(b - 1)    (0 where b == 0)
        d/db = grad * (-a / b**2)

    Notes
    -----
    The exponent rule is kept as listed above for compatibility with models
    trained against it. It is not the analytic derivative ``a**b * ln(a)``,
    so exponents should normally be constants.
    """

    def _compute(self, a, b):
        return np.power(a.astype(np.float64), b)

    def _base_derivative(self, a: ITensor, b: ITensor) -> np.ndarray:
        xa = broadcast_data(a.data, a.shape, self.out_shape).astype(np.float64)
        xb = broadcast_data(b.data, b.shape, self.out_shape).astype(np.float64)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            local = np.where(xb == 0, 0.0, xb * np.power(xa, xb - 1.0))
        return local.reshape(self.out_shape.dims)

    def _backward(self, grad_out: ITensor) -> None:
        a, b = self.saved("a"), self.saved("b")
        if self._needs_grad(0):
            local = type(grad_out)._from_numpy(self._base_derivative(a, b))
            self._accumulate(0, grad_out.mul(local))
        if self._needs_grad(1):
            self._accumulate(1, grad_out.mul(a.neg().div(b.mul(b))))
