"""
Tensor interface definitions.

This module defines the domain-level interface for tensor-like objects using
structural typing. The interface captures the properties that operations,
the autograd engine and external consumers (layers, optimizers, serializers)
rely on, without tying them to the numpy-backed implementation.

Notes
-----
The protocol intentionally lists only the autograd-facing and storage-facing
surface. The full operation vocabulary (add, matmul, reshape, ...) lives on
the concrete `Tensor`.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from ._dtype import DType
from ._shape import Shape

Number = Union[int, float, bool]


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor interface.

    An `ITensor` is an n-dimensional array (shape + dtype + flat row-major
    buffer) that can participate in automatic differentiation.

    Notes
    -----
    - Graph edges are expressed through `parents` and `operation`; leaves
      have no parents and no operation.
    - `grad` always has the owner's shape, never a broadcast shape.
    """

    # ---------------------------------------------------------------------
    # Storage
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        """
        Return the shape of the tensor.

        Returns
        -------
        Shape
            The tensor's immutable shape.
        """
        ...

    @property
    def dtype(self) -> DType:
        """
        Return the element kind of the tensor buffer.

        Returns
        -------
        DType
            The declared dtype. The buffer's element type always matches it.
        """
        ...

    @property
    def data(self) -> Any:
        """
        Return the flat, row-major storage buffer.

        Returns
        -------
        Any
            Backend buffer with exactly `shape.size()` elements.
        """
        ...

    # ---------------------------------------------------------------------
    # Autograd bookkeeping
    # ---------------------------------------------------------------------
    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether this tensor accumulates gradients.

        Returns
        -------
        bool
            True if gradients are tracked for this tensor.
        """
        ...

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None: ...

    @property
    def is_leaf(self) -> bool:
        """
        Indicate whether this tensor was created directly rather than by an
        operation.
        """
        ...

    @property
    def grad(self) -> Optional["ITensor"]:
        """
        Return the accumulated gradient, or None if none was accumulated.
        """
        ...

    @property
    def parents(self) -> Sequence["ITensor"]:
        """
        Return the operands that produced this tensor (empty for leaves).
        """
        ...

    @property
    def operation(self) -> Optional[Any]:
        """
        Return the operation that produced this tensor (None for leaves).
        """
        ...

    def accumulate_grad(self, grad: "ITensor") -> None:
        """
        Add `grad` into this tensor's gradient slot.

        Parameters
        ----------
        grad : ITensor
            Incoming gradient with the same shape as this tensor.

        Notes
        -----
        Accumulation never overwrites: a second call adds to the first.
        This is a no-op if `requires_grad` is False.
        """
        ...

    def backward(self, grad: Optional["ITensor"] = None) -> None:
        """
        Backpropagate from this tensor through its recorded graph.
        """
        ...

    def zero_grad(self) -> None:
        """
        Clear gradients and graph history on every reachable node.
        """
        ...

    def detach(self, requires_grad: bool = False) -> "ITensor":
        """
        Return a copy severed from graph history.
        """
        ...
