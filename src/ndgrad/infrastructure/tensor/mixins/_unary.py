"""
Tensor elementwise math and activation mixin.
"""

from __future__ import annotations

from ...operations import (
    Clip,
    Exp,
    GELU,
    LeakyReLU,
    Log,
    ReLU,
    Root,
    Sigmoid,
    Tanh,
)


class TensorMixinUnary:
    """
    Elementwise math and activations for the concrete Tensor implementation.
    """

    def exp(self):
        return Exp(self).forward()

    def log(self):
        return Log(self).forward()

    def root(self, degree: float):
        """Elementwise ``x ** (1 / degree)``."""
        return Root(self, degree).forward()

    def sqrt(self):
        return self.root(2)

    def clip(self, min_value: float, max_value: float):
        return Clip(self, min_value, max_value).forward()

    def relu(self):
        return ReLU(self).forward()

    def leaky_relu(self, alpha: float = 0.01):
        return LeakyReLU(self, alpha).forward()

    def gelu(self):
        return GELU(self).forward()

    def sigmoid(self):
        return Sigmoid(self).forward()

    def tanh(self):
        return Tanh(self).forward()

    def softmax(self, dim: int = -1, temperature: float = 1.0):
        """
        Softmax over `dim`, computed as ``exp(z - max(z)) / sum(exp(z - max(z)))``
        with ``z = x / temperature``.

        The max shift is a constant, so gradients flow through the division,
        the exponential and the scaling only.

        Raises
        ------
        ValueError
            If `temperature` is zero.
        """
        if temperature == 0:
            raise ValueError("softmax temperature must be non-zero")
        scaled = self.div(temperature) if temperature != 1.0 else self
        shifted = scaled.sub(scaled.max(dim, keepdim=True))
        e = shifted.exp()
        return e.div(e.sum(dim, keepdim=True))
