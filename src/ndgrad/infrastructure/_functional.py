"""
Functional API for activations and losses.

Each wrapper validates its inputs and delegates to the corresponding
operation (or Tensor method), so the functional form and the method form
always build identical graphs.

Losses
------
- `cross_entropy_loss(out, target)`: softmax cross-entropy over the last
  axis; returns one loss per row with the last axis kept.
- `mse_loss(out, target)`: squared error summed over the first axis with
  that axis kept.
"""

from __future__ import annotations

from .operations import MSE, CrossEntropyLoss
from .tensor._tensor import Tensor


def _check_tensor(name: str, x: object) -> None:
    if not isinstance(x, Tensor):
        raise TypeError(f"{name} expects a Tensor, got {type(x).__name__}")


def relu(x: Tensor) -> Tensor:
    _check_tensor("relu", x)
    return x.relu()


def leaky_relu(x: Tensor, alpha: float = 0.01) -> Tensor:
    _check_tensor("leaky_relu", x)
    return x.leaky_relu(alpha)


def gelu(x: Tensor) -> Tensor:
    """GELU with the tanh approximation."""
    _check_tensor("gelu", x)
    return x.gelu()


def sigmoid(x: Tensor) -> Tensor:
    _check_tensor("sigmoid", x)
    return x.sigmoid()


def tanh(x: Tensor) -> Tensor:
    _check_tensor("tanh", x)
    return x.tanh()


def softmax(x: Tensor, dim: int = -1, temperature: float = 1.0) -> Tensor:
    """
    Softmax over `dim` after dividing by `temperature`.

    Higher temperatures flatten the distribution; lower ones sharpen it.
    """
    _check_tensor("softmax", x)
    return x.softmax(dim, temperature)


def cross_entropy_loss(out: Tensor, target: Tensor) -> Tensor:
    """
    Softmax cross-entropy between logits `out` and a target distribution.

    Parameters
    ----------
    out : Tensor
        Unnormalized scores; the last axis indexes classes.
    target : Tensor
        Target probabilities (typically one-hot) with the same shape.

    Returns
    -------
    Tensor
        ``-sum(target * log(clip(softmax(out), eps, 1 - eps)), -1)`` with the
        last axis kept as size 1.

    Raises
    ------
    ShapeMismatchError
        If `out` and `target` have different shapes.
    """
    _check_tensor("cross_entropy_loss", out)
    _check_tensor("cross_entropy_loss", target)
    return CrossEntropyLoss(out, target).forward()


def mse_loss(out: Tensor, target: Tensor) -> Tensor:
    """
    Squared error ``sum((out - target) ** 2, axis=0)`` with axis 0 kept.

    `target` may be any shape that broadcasts to `out`.
    """
    _check_tensor("mse_loss", out)
    _check_tensor("mse_loss", target)
    return MSE(out, target).forward()
