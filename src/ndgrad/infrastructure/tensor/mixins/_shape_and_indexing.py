"""
Tensor shape, indexing, and structural ops mixin.

This module defines `TensorMixinShapeAndIndexing`, which implements the
shape-transforming and indexing-related Tensor methods.

Design notes
------------
- This mixin is intended to be inherited by the concrete `Tensor` class.
- To avoid circular imports, the implementation does not import `Tensor`
  directly; instead it constructs new tensors via `type(self)` (instance
  methods) or `first.__class__` (staticmethods).
- `reshape`, `flatten`, `unsqueeze`, `squeeze`, `transpose` and
  `broadcast_to` are differentiable (they go through operations).
  Indexing, `narrow`, `split`, `chunk`, `stack`, `resize`, `tril` and
  `masked_fill` copy values and produce constants.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ....domain._errors import IndexOutOfRangeError, ShapeMismatchError
from ....domain._shape import Shape, ShapeLike
from ... import _indexing
from ..._broadcasting import broadcast_data, reduce_to_shape
from ...operations import Broadcast, Reshape, Transpose


def _dims_from_args(shape: Sequence[Any]) -> list[int]:
    if len(shape) == 1 and not isinstance(shape[0], (int, np.integer)):
        return [int(d) for d in shape[0]]
    return [int(d) for d in shape]


class TensorMixinShapeAndIndexing:
    """
    Shape and indexing operations for the concrete Tensor implementation.

    Notes
    -----
    Methods assume the host class provides `.shape`, `.dtype`, `.data`,
    `._from_numpy(...)` and the arithmetic/reduction vocabulary.
    """

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def get(self, *idx: Optional[int]):
        """
        Read an element or a slice.

        Parameters
        ----------
        *idx : int | None
            One entry per leading axis. ``None`` selects the whole axis and
            missing trailing entries count as ``None``.

        Returns
        -------
        Tensor
            For a fully specified index, a 1-element 1-D tensor holding the
            element. Otherwise the selected block with the integer-indexed
            axes removed.

        Raises
        ------
        IndexOutOfRangeError
            If there are more indices than axes or a position is out of range.
        """
        dims = self.shape.dims
        index = _indexing.resolve_index(idx, dims)
        if _indexing.is_full_index(index):
            value = self.data[_indexing.flat_index(index, dims)]
            return type(self)._from_numpy(np.array([value]), self.dtype)
        block = _indexing.get_slice(self.data, dims, index)
        return type(self)._from_numpy(
            block.reshape(_indexing.slice_shape(index, dims)), self.dtype
        )

    def item(self, *idx: int):
        """
        Return one element as a Python scalar.

        Without an index the tensor must hold exactly one element.

        Raises
        ------
        IndexOutOfRangeError
            If no index is given for a multi-element tensor, or the index is
            not a full in-range index.
        """
        if not idx:
            if self.shape.size() != 1:
                raise IndexOutOfRangeError(
                    (), self.shape.dims, detail="item() without an index needs a single element"
                )
            return self.data[0].item()
        return self.data[_indexing.flat_index(idx, self.shape.dims)].item()

    def set(self, value: Any, *idx: Optional[int]):
        """
        Write an element or a slice, in place.

        Parameters
        ----------
        value : Tensor | Number
            For a full index, a scalar (or single-element tensor). For a
            partial index, a tensor with as many elements as the slice, or a
            scalar filled into the whole slice.
        *idx : int | None
            Index in the `get` convention.

        Returns
        -------
        Tensor
            This tensor.

        Raises
        ------
        IndexOutOfRangeError
            If the index is invalid.
        ShapeMismatchError
            If a slice value has the wrong number of elements.
        """
        dims = self.shape.dims
        index = _indexing.resolve_index(idx, dims)
        raw = value.data if hasattr(value, "data") and hasattr(value, "shape") else value
        if _indexing.is_full_index(index):
            self.data[_indexing.flat_index(index, dims)] = self.dtype.parse(raw)
        else:
            _indexing.set_slice(self.data, dims, index, self.dtype.cast(raw))
        return self

    def index_of(self, value: Any) -> int:
        """
        Flat position of the first element equal to `value`.

        Raises
        ------
        IndexOutOfRangeError
            If no element equals `value`.
        """
        target = self.dtype.parse(value)
        hits = np.flatnonzero(self.data == target)
        if hits.size == 0:
            raise IndexOutOfRangeError(value, self.shape.dims, detail="value not found")
        return int(hits[0])

    def index_of_md(self, value: Any) -> tuple[int, ...]:
        """Multi-index of the first element equal to `value`."""
        return _indexing.unravel_index(self.index_of(value), self.shape.dims)

    # ------------------------------------------------------------------
    # Differentiable layout changes
    # ------------------------------------------------------------------
    def reshape(self, *shape: Any):
        """
        Reinterpret the tensor with a new shape of the same size.

        One dimension may be ``-1`` and is inferred.

        Raises
        ------
        ShapeMismatchError
            If the sizes differ or the wildcard cannot be inferred.
        """
        dims = _dims_from_args(shape)
        if dims.count(-1) > 1:
            raise ShapeMismatchError(
                "reshape", self.shape.dims, dims, detail="only one dimension may be -1"
            )
        if -1 in dims:
            known = int(np.prod([d for d in dims if d != -1], dtype=np.int64))
            size = self.shape.size()
            if known == 0 or size % known != 0:
                raise ShapeMismatchError(
                    "reshape", self.shape.dims, dims, detail="cannot infer -1"
                )
            dims[dims.index(-1)] = size // known
        return Reshape(self, Shape(dims)).forward()

    def flatten(self):
        return self.reshape(self.shape.size())

    def unsqueeze(self, dim: int):
        """Insert a size-1 axis at `dim` (``-rank - 1 <= dim <= rank``)."""
        rank = self.shape.rank()
        dim = _indexing.normalize_dim(dim, rank, extra=1)
        dims = list(self.shape.dims)
        dims.insert(dim, 1)
        return self.reshape(dims)

    def squeeze(self, dim: Optional[int] = None):
        """
        Remove size-1 axes.

        Without `dim` every size-1 axis is removed, keeping ``(1,)`` if that
        would remove all of them.

        Raises
        ------
        ShapeMismatchError
            If `dim` is given and its extent is not 1.
        """
        dims = list(self.shape.dims)
        if dim is None:
            kept = [d for d in dims if d != 1]
            if not kept and dims:
                kept = [1]
            return self.reshape(kept)
        dim = _indexing.normalize_dim(dim, len(dims))
        if dims[dim] != 1:
            raise ShapeMismatchError(
                "squeeze", self.shape.dims, detail=f"axis {dim} has size {dims[dim]}, not 1"
            )
        del dims[dim]
        return self.reshape(dims)

    def transpose(self, dim0: int, dim1: int):
        return Transpose(self, dim0, dim1).forward()

    @property
    def T(self):
        """Swap the last two axes."""
        return self.transpose(-1, -2)

    def broadcast_to(self, *shape: Any):
        """
        Expand to a broadcast-compatible shape (or another tensor's shape).
        """
        if len(shape) == 1 and hasattr(shape[0], "shape") and hasattr(shape[0], "data"):
            target = shape[0].shape
        else:
            target = Shape(_dims_from_args(shape))
        return Broadcast(self, target).forward()

    def reduce_to_shape(self, *shape: Any):
        """Sum-reduce a broadcast tensor back to `shape` (differentiable)."""
        return reduce_to_shape(self, Shape(_dims_from_args(shape)))

    # ------------------------------------------------------------------
    # Copying structural ops
    # ------------------------------------------------------------------
    def resize(self, shape: ShapeLike, fill: Any):
        """
        Return a copy with a different size.

        The first ``min(old, new)`` elements are copied in row-major order
        and any new trailing elements are set to `fill`.
        """
        target = Shape.of(shape)
        out = np.full(target.size(), self.dtype.parse(fill), dtype=self.dtype.numpy)
        n = min(target.size(), self.shape.size())
        out[:n] = self.data[:n]
        return type(self)._from_numpy(out.reshape(target.dims), self.dtype)

    def narrow(self, dim: int, start: int, length: int):
        """
        Copy the window ``[start, start + length)`` along `dim`.

        Raises
        ------
        IndexOutOfRangeError
            If the axis or the window is out of range.
        """
        block, shape = _indexing.narrow(self.data, self.shape.dims, dim, start, length)
        return type(self)._from_numpy(block.reshape(shape), self.dtype)

    def narrow_set(self, block, dim: int, start: int):
        """
        Return a copy of this tensor with `block` written at `start` along
        `dim`.

        Raises
        ------
        ShapeMismatchError
            If `block` disagrees with this tensor outside `dim`.
        IndexOutOfRangeError
            If the window leaves the axis.
        """
        data = self.data.copy()
        _indexing.narrow_assign(
            data,
            self.shape.dims,
            self.dtype.cast(block.data),
            block.shape.dims,
            dim,
            start,
        )
        return type(self)._from_numpy(data.reshape(self.shape.dims), self.dtype)

    def split(self, dim: int, sizes: Sequence[int]) -> list:
        """
        Split along `dim` into consecutive pieces of the given sizes.

        Raises
        ------
        ShapeMismatchError
            If the sizes do not add up to the extent of `dim`.
        """
        dim = _indexing.normalize_dim(dim, self.shape.rank())
        if sum(sizes) != self.shape[dim]:
            raise ShapeMismatchError(
                "split",
                self.shape.dims,
                detail=f"sizes {list(sizes)} do not add up to {self.shape[dim]}",
            )
        out = []
        start = 0
        for size in sizes:
            out.append(self.narrow(dim, start, size))
            start += size
        return out

    def chunk(self, dim: int, chunk_size: int) -> list:
        """
        Split along `dim` into pieces of `chunk_size`; the last piece holds
        the remainder.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        extent = self.shape[_indexing.normalize_dim(dim, self.shape.rank())]
        sizes = [chunk_size] * (extent // chunk_size)
        if extent % chunk_size:
            sizes.append(extent % chunk_size)
        return self.split(dim, sizes)

    @staticmethod
    def stack(tensors: Sequence[Any], dim: int = 0):
        """
        Join equally shaped tensors along a new axis `dim`.

        Raises
        ------
        ValueError
            If `tensors` is empty.
        ShapeMismatchError
            If the tensors do not all have the same shape.
        """
        if len(tensors) == 0:
            raise ValueError("stack expects at least one tensor")
        first = tensors[0]
        for t in tensors[1:]:
            if t.shape != first.shape:
                raise ShapeMismatchError("stack", first.shape.dims, t.shape.dims)
        dim = _indexing.normalize_dim(dim, first.shape.rank(), extra=1)
        arrays = [t.data.reshape(t.shape.dims) for t in tensors]
        return first.__class__._from_numpy(np.stack(arrays, axis=dim), first.dtype)

    def tril(self, value: Any):
        """
        Overwrite the strict upper triangle of a 2-D tensor with `value`,
        in place.

        Raises
        ------
        ShapeMismatchError
            If the tensor is not 2-D.
        """
        if self.shape.rank() != 2:
            raise ShapeMismatchError(
                "tril", self.shape.dims, detail="only 2-D tensors are supported"
            )
        rows, cols = self.shape.dims
        view = self.data.reshape(rows, cols)
        view[np.triu_indices(rows, k=1, m=cols)] = self.dtype.parse(value)
        return self

    def masked_fill(self, mask, check_for: float, value: Any):
        """
        Return a copy where elements whose (broadcast) mask entry equals
        `check_for` are replaced by `value`.
        """
        m = broadcast_data(mask.data, mask.shape, self.shape).astype(np.float64)
        out = np.where(m == float(check_for), self.dtype.parse(value), self.data)
        return type(self)._from_numpy(out.reshape(self.shape.dims), self.dtype)
