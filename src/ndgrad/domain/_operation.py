"""
Autograd operation interface definitions.

This module defines the abstract base class for differentiable operations.
An `Operation` is a single node-producer in the computation graph: it
captures its operand tensors at construction time (establishing graph
edges), computes exactly one output in `forward()`, and propagates an
upstream gradient back into its operands in `backward()`.

Compared to a stateless function-style autograd API, each `Operation`
instance is its own per-invocation context: values needed for the backward
pass are stored in a string-keyed cache via `save_for_backward`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ._errors import InvalidAutogradStateError
from ._tensor import ITensor


class Operation(ABC):
    """
    Abstract base class for differentiable operations.

    Subclasses implement:

    - `_forward()`: compute the output value. Must not touch gradient state.
    - `_backward(grad_out)`: reduce `grad_out` to each input's pre-broadcast
      shape, apply the local derivative and call `accumulate_grad` on the
      inputs.

    Parameters
    ----------
    *inputs : ITensor
        Operand tensors. They become the `parents` of the output.

    Notes
    -----
    - Operands should be read through detached snapshots (saved in the
      cache) during backward, so in-place mutation of an operand after the
      forward pass cannot corrupt its gradient.
    - `forward()` stamps the output with its history:
      ``requires_grad = any(input.requires_grad)``, ``operation = self``,
      ``parents = inputs``, ``is_leaf = False``.
    """

    def __init__(self, *inputs: ITensor) -> None:
        self.inputs: tuple[ITensor, ...] = tuple(inputs)
        self.cache: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return type(self).__name__

    def save_for_backward(self, key: str, value: Any) -> None:
        """
        Store a value for use during the backward pass.

        Parameters
        ----------
        key : str
            Cache key.
        value : Any
            Value to store (shapes, detached tensors, scalars, ...).
        """
        self.cache[key] = value

    def saved(self, key: str) -> Any:
        """
        Return a value stored by `save_for_backward`.

        Raises
        ------
        InvalidAutogradStateError
            If nothing was saved under `key`.
        """
        if key not in self.cache:
            raise InvalidAutogradStateError(
                f"{self.name}: cached value '{key}' is missing at backward time."
            )
        return self.cache[key]

    @abstractmethod
    def _forward(self) -> ITensor:
        """
        Compute the output tensor from `self.inputs`.

        Returns
        -------
        ITensor
            The freshly allocated output tensor.
        """
        ...

    @abstractmethod
    def _backward(self, grad_out: ITensor) -> None:
        """
        Propagate `grad_out` into the inputs via `accumulate_grad`.

        Parameters
        ----------
        grad_out : ITensor
            Gradient of the loss with respect to this operation's output.
        """
        ...

    def forward(self) -> ITensor:
        """
        Run the operation and record it in the graph.

        Returns
        -------
        ITensor
            The output tensor, stamped with this operation and its parents.
        """
        out = self._forward()
        out._set_history(self, self.inputs)
        return out

    def backward(self, grad_out: ITensor) -> None:
        """
        Run the backward rule for this operation.

        Parameters
        ----------
        grad_out : ITensor
            Gradient with respect to the output produced by `forward()`.
        """
        self._backward(grad_out)

    def __repr__(self) -> str:
        shapes = ", ".join(str(t.shape) for t in self.inputs)
        return f"{self.name}({shapes})"
