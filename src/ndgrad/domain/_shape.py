"""
Immutable shape descriptor.

A `Shape` is an ordered sequence of non-negative dimension sizes. It is
attached to every tensor snapshot and is never mutated: operations that
change the layout (reshape, transpose, broadcast) create a new `Shape`.
"""

from __future__ import annotations

import operator
from typing import Iterator, Sequence, Union, overload

from ._errors import ShapeMismatchError

ShapeLike = Union["Shape", Sequence[int], int]


class Shape:
    """
    Immutable dimension vector.

    Parameters
    ----------
    dims : Sequence[int]
        Dimension sizes. Every entry must be a non-negative integer.

    Notes
    -----
    - `rank()` is the number of dimensions and `size()` the product of all
      dimensions (1 for the scalar shape `()`); `size()` is cached.
    - Equality is by dimension sequence. A `Shape` also compares equal to a
      plain tuple or list with the same dimensions.
    """

    __slots__ = ("_dims", "_size")

    def __init__(self, dims: Sequence[int] = ()) -> None:
        normalized = []
        for d in dims:
            d = int(d)
            if d < 0:
                raise ShapeMismatchError(
                    "shape", tuple(dims), detail="dimensions must be non-negative"
                )
            normalized.append(d)
        self._dims: tuple[int, ...] = tuple(normalized)
        self._size: int = -1

    @staticmethod
    def of(value: ShapeLike) -> "Shape":
        """
        Normalize a shape-like value into a `Shape`.

        Parameters
        ----------
        value : Shape | Sequence[int] | int
            An existing shape, a sequence of dimensions, or a single int
            (interpreted as a 1-D shape).

        Returns
        -------
        Shape
            The normalized shape (the same object if `value` is a Shape).
        """
        if isinstance(value, Shape):
            return value
        if hasattr(value, "__iter__"):
            return Shape(tuple(value))
        return Shape((operator.index(value),))

    @property
    def dims(self) -> tuple[int, ...]:
        return self._dims

    def rank(self) -> int:
        """Return the number of dimensions."""
        return len(self._dims)

    def size(self) -> int:
        """Return the number of elements a tensor of this shape holds."""
        if self._size == -1:
            n = 1
            for d in self._dims:
                n *= d
            self._size = n
        return self._size

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    @overload
    def __getitem__(self, i: int) -> int: ...

    @overload
    def __getitem__(self, i: slice) -> "Shape": ...

    def __getitem__(self, i):
        if isinstance(i, slice):
            return Shape(self._dims[i])
        return self._dims[i]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, (tuple, list)):
            return self._dims == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __repr__(self) -> str:
        return f"Shape{self._dims}"

    def __str__(self) -> str:
        return str(list(self._dims))
