"""
Elementwise unary operations (exp, log, root, clip).

Each operation computes its forward value in float64 and casts it to the
input's dtype. Backward rules build the local derivative with numpy from the
detached input snapshot and multiply it into the upstream gradient.
"""

from __future__ import annotations

import math
from abc import abstractmethod

import numpy as np

from ...domain._operation import Operation
from ...domain._tensor import ITensor
from .._config import get_config


class UnaryOperation(Operation):
    """
    Base class for elementwise single-input operations.

    Subclasses implement `_compute(x)` and `_derivative(x, out)` on float64
    arrays shaped like the input.
    """

    def __init__(self, a: ITensor) -> None:
        super().__init__(a)
        self.save_for_backward("a", a.detach())

    @abstractmethod
    def _compute(self, x: np.ndarray) -> np.ndarray:
        """Elementwise forward value."""
        ...

    @abstractmethod
    def _derivative(self, x: np.ndarray, out: np.ndarray) -> np.ndarray:
        """Local derivative given the input `x` and the forward result `out`."""
        ...

    def _forward(self) -> ITensor:
        (a,) = self.inputs
        x = a.to_numpy().astype(np.float64)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            out = self._compute(x)
        self.save_for_backward("out", out)
        return type(a)._from_numpy(out, a.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        (a,) = self.inputs
        if not a.requires_grad:
            return
        x = self.saved("a").to_numpy().astype(np.float64)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            local = self._derivative(x, self.saved("out"))
        a.accumulate_grad(grad_out.mul(type(a)._from_numpy(local, grad_out.dtype)))


class Exp(UnaryOperation):
    """Elementwise natural exponential."""

    def _compute(self, x):
        return np.exp(x)

    def _derivative(self, x, out):
        return out


class Log(UnaryOperation):
    """
    Natural logarithm.

    The backward rule divides by ``max(a, eps)`` where ``eps`` is the
    configured `log_epsilon`, so gradients stay finite at zero.
    """

    def __init__(self, a: ITensor) -> None:
        super().__init__(a)
        self.save_for_backward("eps", get_config().log_epsilon)

    def _compute(self, x):
        return np.log(x)

    def _derivative(self, x, out):
        return 1.0 / np.maximum(x, self.saved("eps"))


class Root(UnaryOperation):
    """
    Elementwise root of a given degree, ``a ** (1 / degree)``.
    """

    def __init__(self, a: ITensor, degree: float) -> None:
        if degree == 0:
            raise ValueError("root degree must be non-zero")
        super().__init__(a)
        self.degree = float(degree)

    def _compute(self, x):
        return np.power(x, 1.0 / self.degree)

    def _derivative(self, x, out):
        return (1.0 / self.degree) * np.power(x, 1.0 / self.degree - 1.0)


class Clip(UnaryOperation):
    """
    Clamp values into ``[min_value, max_value]``.

    The gradient passes through where the input lies inside the closed
    interval and is zero elsewhere.
    """

    def __init__(self, a: ITensor, min_value: float, max_value: float) -> None:
        if min_value > max_value:
            raise ValueError(
                f"clip: min_value ({min_value}) must not exceed max_value ({max_value})"
            )
        super().__init__(a)
        self.min_value = float(min_value)
        self.max_value = float(max_value)

    def _compute(self, x):
        return np.clip(x, self.min_value, self.max_value)

    def _derivative(self, x, out):
        return ((x >= self.min_value) & (x <= self.max_value)).astype(np.float64)


class ReLU(Clip):
    """Rectified linear unit, expressed as ``clip(a, 0, inf)``."""

    def __init__(self, a: ITensor) -> None:
        super().__init__(a, 0.0, math.inf)
