"""
Activation operations.

All activations are elementwise and share the `UnaryOperation` machinery:
the forward value is computed in float64 and cast to the input dtype, and
the backward pass multiplies the upstream gradient by a closed-form local
derivative evaluated on the input snapshot.
"""

from __future__ import annotations

import math

import numpy as np

from ...domain._tensor import ITensor
from ._unary import UnaryOperation

_GELU_COEFF = 0.044715
_SQRT_2_OVER_PI = math.sqrt(2.0 / math.pi)


class Sigmoid(UnaryOperation):
    """
    Logistic sigmoid ``1 / (1 + exp(-x))``.

    Backward: ``s * (1 - s)``.
    """

    def _compute(self, x):
        out = np.empty_like(x)
        pos = x >= 0
        out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
        e = np.exp(x[~pos])
        out[~pos] = e / (1.0 + e)
        return out

    def _derivative(self, x, out):
        return out * (1.0 - out)


class Tanh(UnaryOperation):
    """Hyperbolic tangent. Backward: ``1 - tanh(x)**2``."""

    def _compute(self, x):
        return np.tanh(x)

    def _derivative(self, x, out):
        return 1.0 - out * out


class GELU(UnaryOperation):
    """
    Gaussian error linear unit (tanh approximation).

    Implements:

        gelu(x) = 0.5 * x * (1 + tanh(s)),  s = sqrt(2/pi) * (x + 0.044715 x^3)

    Backward:

        0.5 * (1 + tanh(s))
        + 0.5 * x * sech^2(s) * sqrt(2/pi) * (1 + 3 * 0.044715 x^2)
    """

    @staticmethod
    def _inner(x: np.ndarray) -> np.ndarray:
        return _SQRT_2_OVER_PI * (x + _GELU_COEFF * np.power(x, 3))

    def _compute(self, x):
        return 0.5 * x * (1.0 + np.tanh(self._inner(x)))

    def _derivative(self, x, out):
        t = np.tanh(self._inner(x))
        sech2 = 1.0 - t * t
        return (
            0.5 * (1.0 + t)
            + 0.5 * x * sech2 * _SQRT_2_OVER_PI * (1.0 + 3.0 * _GELU_COEFF * x * x)
        )


class LeakyReLU(UnaryOperation):
    """
    Leaky rectified linear unit.

    ``x`` for positive inputs and ``alpha * x`` otherwise. The local
    derivative is 1 where ``x > 0`` and ``alpha`` elsewhere.
    """

    def __init__(self, a: ITensor, alpha: float = 0.01) -> None:
        super().__init__(a)
        self.alpha = float(alpha)

    def _compute(self, x):
        return np.where(x > 0, x, self.alpha * x)

    def _derivative(self, x, out):
        return np.where(x > 0, 1.0, self.alpha)
