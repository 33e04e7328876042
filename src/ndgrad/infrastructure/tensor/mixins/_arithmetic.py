"""
Tensor arithmetic mixin.

This module defines `TensorMixinArithmetic`, which provides the
differentiable arithmetic vocabulary (add, sub, mul, div, pow, neg, matmul)
and the corresponding Python operators, plus the non-differentiable
elementwise `maximum`/`minimum`.

Python scalars on either side of an operator are lifted to 0-d constant
tensors (``requires_grad=False``) of the tensor operand's dtype. Operands
of any other type make the operator return `NotImplemented` (so Python
raises `TypeError`); the named methods raise `TypeError` directly.
"""

from __future__ import annotations

from numbers import Number as _Number
from typing import Any

import numpy as np

from ..._broadcasting import broadcast_data, broadcast_shapes
from ...operations import Add, Div, MatMul, Mul, Pow, Sub


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (_Number, np.number, np.bool_)) and not isinstance(
        value, complex
    )


class TensorMixinArithmetic:
    """
    Arithmetic operations for the concrete Tensor implementation.

    Notes
    -----
    New tensors are constructed via `type(self)` to avoid importing `Tensor`.
    """

    # numpy scalars and arrays defer to the reflected tensor operators
    __array_ufunc__ = None

    def _lift(self, other: Any):
        """
        Return `other` as a tensor operand.

        Raises
        ------
        TypeError
            If `other` is neither a tensor of the same family nor a real
            scalar.
        """
        if isinstance(other, TensorMixinArithmetic):
            return other
        if _is_scalar(other):
            return type(self)._from_numpy(np.asarray(other), self.dtype)
        raise TypeError(
            f"unsupported operand type for tensor arithmetic: {type(other).__name__}"
        )

    # ------------------------------------------------------------------
    # Named operations
    # ------------------------------------------------------------------
    def add(self, other):
        return Add(self, self._lift(other)).forward()

    def sub(self, other):
        return Sub(self, self._lift(other)).forward()

    def mul(self, other):
        return Mul(self, self._lift(other)).forward()

    def div(self, other):
        return Div(self, self._lift(other)).forward()

    def pow(self, exponent):
        """Raise elementwise to `exponent` (a tensor or a scalar)."""
        return Pow(self, self._lift(exponent)).forward()

    def neg(self):
        return self.mul(-1)

    def matmul(self, other):
        """
        Matrix product over the last two axes with broadcast batch axes.

        Rank-1 operands are treated as a row vector (left) or a column
        vector (right), and the added axis is removed from the result.
        """
        if not isinstance(other, TensorMixinArithmetic):
            raise TypeError(f"matmul expects a tensor, got {type(other).__name__}")
        return MatMul(self, other).forward()

    def maximum(self, other):
        """Elementwise maximum (broadcasting, not differentiable)."""
        return self._elementwise(other, np.maximum)

    def minimum(self, other):
        """Elementwise minimum (broadcasting, not differentiable)."""
        return self._elementwise(other, np.minimum)

    def _elementwise(self, other, fn):
        other = self._lift(other)
        shape = broadcast_shapes(self.shape, other.shape)
        a = broadcast_data(self.data, self.shape, shape)
        b = broadcast_data(other.data, other.shape, shape)
        return type(self)._from_numpy(fn(a, b).reshape(shape.dims), self.dtype)

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    def _binary(self, other, method: str, reflected: bool = False):
        try:
            other = self._lift(other)
        except TypeError:
            return NotImplemented
        if reflected:
            return getattr(other, method)(self)
        return getattr(self, method)(other)

    def __add__(self, other):
        return self._binary(other, "add")

    def __radd__(self, other):
        return self._binary(other, "add", reflected=True)

    def __sub__(self, other):
        return self._binary(other, "sub")

    def __rsub__(self, other):
        return self._binary(other, "sub", reflected=True)

    def __mul__(self, other):
        return self._binary(other, "mul")

    def __rmul__(self, other):
        return self._binary(other, "mul", reflected=True)

    def __truediv__(self, other):
        return self._binary(other, "div")

    def __rtruediv__(self, other):
        return self._binary(other, "div", reflected=True)

    def __pow__(self, other):
        return self._binary(other, "pow")

    def __rpow__(self, other):
        return self._binary(other, "pow", reflected=True)

    def __matmul__(self, other):
        if not isinstance(other, TensorMixinArithmetic):
            return NotImplemented
        return self.matmul(other)

    def __neg__(self):
        return self.neg()
