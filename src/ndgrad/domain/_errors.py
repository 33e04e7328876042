"""
Error taxonomy for ndgrad.

This module defines the typed exceptions raised by the tensor and autograd
core. All of them signal programmer/caller errors: they are raised
synchronously at the point of misuse and are never retried internally.

The concrete classes also derive from the closest built-in exception
(`ValueError`, `IndexError`, `RuntimeError`, `TypeError`) so callers that
already catch the built-ins keep working.
"""

from typing import Any, Optional, Sequence


class NdGradError(Exception):
    """
    Base class for all ndgrad errors.
    """


class ShapeMismatchError(NdGradError, ValueError):
    """
    Raised when shapes are incompatible for the requested operation.

    Typical sources are broadcast incompatibility, reshape size mismatch,
    matmul inner-dimension mismatch and slice/narrow shape violations.

    Attributes
    ----------
    op : str
        The operation that rejected the shapes (e.g., "broadcast", "reshape").
    shapes : tuple[tuple[int, ...], ...]
        The offending shapes, in operand order.
    """

    def __init__(
        self, op: str, *shapes: Sequence[int], detail: Optional[str] = None
    ) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        op : str
            Name of the operation that failed.
        *shapes : Sequence[int]
            Shapes involved in the failure.
        detail : Optional[str], optional
            Additional human-readable explanation.
        """
        self.op = op
        self.shapes = tuple(tuple(int(d) for d in s) for s in shapes)
        msg = f"{op}: incompatible shapes {', '.join(str(s) for s in self.shapes)}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class IndexOutOfRangeError(NdGradError, IndexError):
    """
    Raised when an axis or position is outside the valid range.

    Attributes
    ----------
    index : Any
        The offending index (an int or a multi-index tuple).
    bound : Any
        The valid range or shape the index was checked against.
    """

    def __init__(self, index: Any, bound: Any, detail: Optional[str] = None) -> None:
        self.index = index
        self.bound = bound
        msg = f"Index {index!r} is out of range for {bound!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class InvalidAutogradStateError(NdGradError, RuntimeError):
    """
    Raised when the autograd graph is used in an invalid state.

    Examples are calling `backward()` on a tensor that does not require
    gradients, or an operation whose cached backward value is missing.

    Notes
    -----
    A failed backward pass leaves gradient state undefined for that traversal.
    Callers should discard the graph and rebuild it.
    """


class UnsupportedDTypeError(NdGradError, TypeError):
    """
    Raised when a value cannot be parsed or cast into a dtype.

    Attributes
    ----------
    dtype : str
        Name of the target dtype (or the unknown dtype name).
    value : Any
        The value that could not be converted.
    """

    def __init__(self, dtype: str, value: Any) -> None:
        self.dtype = str(dtype)
        self.value = value
        super().__init__(
            f"Cannot convert {value!r} (type {type(value).__name__}) to dtype '{dtype}'."
        )
