"""
Loss operations.

Losses take a prediction (``out``) and a constant ``target``. Only the
prediction receives a gradient.
"""

from __future__ import annotations

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._operation import Operation
from ...domain._tensor import ITensor
from .._broadcasting import broadcast_data
from .._config import get_config


def _softmax_last(x: np.ndarray) -> np.ndarray:
    shifted = x - np.max(x, axis=-1, keepdims=True)
    e = np.exp(shifted)
    return e / np.sum(e, axis=-1, keepdims=True)


class CrossEntropyLoss(Operation):
    """
    Softmax cross-entropy over the last axis.

    Implements:

        p    = clip(softmax(out), eps, 1 - eps)
        loss = -sum(target * log(p), axis=-1, keepdims=True)

    Backward (into ``out`` only):

        (softmax(out) - target) * grad
    """

    def __init__(self, out: ITensor, target: ITensor) -> None:
        if out.shape != target.shape:
            raise ShapeMismatchError(
                "cross_entropy_loss",
                out.shape.dims,
                target.shape.dims,
                detail="prediction and target must have the same shape",
            )
        if out.shape.rank() == 0:
            raise ShapeMismatchError(
                "cross_entropy_loss", out.shape.dims, detail="rank must be >= 1"
            )
        super().__init__(out, target)
        self.eps = get_config().cross_entropy_epsilon

    def _forward(self) -> ITensor:
        out, target = self.inputs
        logits = out.to_numpy().astype(np.float64)
        t = target.to_numpy().astype(np.float64)
        probs = _softmax_last(logits)
        self.save_for_backward("probs", probs)
        self.save_for_backward("target", t)
        clipped = np.clip(probs, self.eps, 1.0 - self.eps)
        loss = -np.sum(t * np.log(clipped), axis=-1, keepdims=True)
        return type(out)._from_numpy(loss, out.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        out, _ = self.inputs
        if not out.requires_grad:
            return
        local = self.saved("probs") - self.saved("target")
        local_t = type(out)._from_numpy(local, grad_out.dtype)
        out.accumulate_grad(local_t.mul(grad_out))


class MSE(Operation):
    """
    Squared error summed over the first axis.

    Implements:

        loss = sum((out - target) ** 2, axis=0, keepdims=True)

    Backward (into ``out`` only):

        2 * (out - target) * grad
    """

    def __init__(self, out: ITensor, target: ITensor) -> None:
        if out.shape.rank() == 0:
            raise ShapeMismatchError("mse_loss", out.shape.dims, detail="rank must be >= 1")
        super().__init__(out, target)

    def _forward(self) -> ITensor:
        out, target = self.inputs
        t = broadcast_data(target.data, target.shape, out.shape)
        diff = out.to_numpy().astype(np.float64) - t.reshape(out.shape.dims).astype(np.float64)
        self.save_for_backward("diff", diff)
        loss = np.sum(diff * diff, axis=0, keepdims=True)
        return type(out)._from_numpy(loss, out.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        out, _ = self.inputs
        if not out.requires_grad:
            return
        local = type(out)._from_numpy(2.0 * self.saved("diff"), grad_out.dtype)
        out.accumulate_grad(local.mul(grad_out))
