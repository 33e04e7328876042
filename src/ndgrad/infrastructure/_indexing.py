"""
Index arithmetic over flat row-major buffers.

Tensors store their elements in a contiguous 1-D numpy buffer. The helpers
in this module translate between multi-dimensional positions and flat
offsets, validate and normalize axes/positions, and read or write
sub-blocks (slices, narrow windows) of such buffers.

Conventions
-----------
- Negative positions and axes count from the end: ``idx -> (n + idx) % n``
  after a range check.
- A partial index is padded on the right with ``None`` ("select the whole
  axis"). Integer entries select a single position on their axis.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ..domain._errors import IndexOutOfRangeError, ShapeMismatchError

Index = Sequence[Optional[int]]


def compute_strides(dims: Sequence[int]) -> tuple[int, ...]:
    """
    Compute row-major strides (in elements) for a dimension vector.

    Examples
    --------
    >>> compute_strides((2, 3, 4))
    (12, 4, 1)
    """
    strides = [1] * len(dims)
    acc = 1
    for i in range(len(dims) - 1, -1, -1):
        strides[i] = acc
        acc *= int(dims[i])
    return tuple(strides)


def normalize_position(idx: int, length: int, axis: int | None = None) -> int:
    """
    Validate a position along an axis of size `length` and make it positive.

    Raises
    ------
    IndexOutOfRangeError
        If ``idx`` is outside ``[-length, length)``.
    """
    idx = int(idx)
    if length <= 0 or idx >= length or idx < -length:
        detail = f"axis {axis} has size {length}" if axis is not None else None
        raise IndexOutOfRangeError(idx, length, detail=detail)
    return (length + idx) % length


def normalize_dim(dim: int, rank: int, *, extra: int = 0) -> int:
    """
    Validate an axis number and make it positive.

    Parameters
    ----------
    dim : int
        Axis, possibly negative.
    rank : int
        Rank of the tensor the axis refers to.
    extra : int, optional
        Additional admissible axes past the end (``1`` for unsqueeze/stack,
        where a new axis may be inserted after the last one).

    Raises
    ------
    IndexOutOfRangeError
        If the axis is outside ``[-(rank + extra), rank + extra)``.
    """
    bound = rank + extra
    dim = int(dim)
    if bound == 0 or dim >= bound or dim < -bound:
        raise IndexOutOfRangeError(dim, bound, detail="invalid dimension")
    return dim % bound


def flat_index(index: Sequence[int], dims: Sequence[int]) -> int:
    """
    Convert a full multi-index into a flat row-major offset.

    Raises
    ------
    IndexOutOfRangeError
        If the index has the wrong length or any position is out of range.
    """
    if len(index) != len(dims):
        raise IndexOutOfRangeError(
            tuple(index), tuple(dims), detail="index rank does not match tensor rank"
        )
    offset = 0
    for axis, (i, n, s) in enumerate(zip(index, dims, compute_strides(dims))):
        offset += normalize_position(i, n, axis) * s
    return offset


def unravel_index(flat: int, dims: Sequence[int]) -> tuple[int, ...]:
    """Convert a flat row-major offset into a multi-index."""
    size = int(np.prod(dims, dtype=np.int64)) if len(dims) else 1
    flat = normalize_position(flat, size)
    out = []
    for s in compute_strides(dims):
        out.append(flat // s)
        flat %= s
    return tuple(out)


def resolve_index(index: Index, dims: Sequence[int]) -> tuple[Optional[int], ...]:
    """
    Pad a (possibly partial) index with ``None`` and normalize its integers.

    Raises
    ------
    IndexOutOfRangeError
        If more indices than dimensions are given, or a position is out of
        range.
    """
    if len(index) > len(dims):
        raise IndexOutOfRangeError(
            tuple(index),
            tuple(dims),
            detail=f"number of indices exceeds the tensor rank ({len(index)} > {len(dims)})",
        )
    padded = list(index) + [None] * (len(dims) - len(index))
    return tuple(
        None if i is None else normalize_position(i, dims[axis], axis)
        for axis, i in enumerate(padded)
    )


def is_full_index(index: Sequence[Optional[int]]) -> bool:
    return all(i is not None for i in index)


def slice_shape(index: Sequence[Optional[int]], dims: Sequence[int]) -> tuple[int, ...]:
    """
    Shape of the block selected by a resolved index, integer axes removed.
    """
    return tuple(int(n) for i, n in zip(index, dims) if i is None)


def _numpy_key(index: Sequence[Optional[int]]) -> tuple:
    return tuple(slice(None) if i is None else i for i in index)


def get_slice(
    data: np.ndarray, dims: Sequence[int], index: Sequence[Optional[int]]
) -> np.ndarray:
    """
    Read the block selected by a resolved index.

    Returns
    -------
    np.ndarray
        A flat copy of the selected elements in row-major order.
    """
    block = data.reshape(tuple(dims))[_numpy_key(index)]
    return np.array(block, copy=True).reshape(-1)


def set_slice(
    data: np.ndarray,
    dims: Sequence[int],
    index: Sequence[Optional[int]],
    values: np.ndarray,
) -> None:
    """
    Overwrite the block selected by a resolved index, in place.

    `values` must either hold exactly as many elements as the block or be a
    single element (which is broadcast into the block).

    Raises
    ------
    ShapeMismatchError
        If the value count matches neither the block size nor 1.
    """
    target = slice_shape(index, dims)
    size = int(np.prod(target, dtype=np.int64)) if target else 1
    values = np.asarray(values).reshape(-1)
    if values.size == size:
        block = values.reshape(target)
    elif values.size == 1:
        block = values[0]
    else:
        raise ShapeMismatchError(
            "set", values.shape, target, detail=f"slice needs {size} elements"
        )
    view = data.reshape(tuple(dims))
    view[_numpy_key(index)] = block


def check_narrow(dims: Sequence[int], dim: int, start: int, length: int) -> int:
    """
    Validate a narrow window and return the normalized axis.

    Raises
    ------
    IndexOutOfRangeError
        If the axis is invalid or ``[start, start + length)`` leaves the axis.
    """
    dim = normalize_dim(dim, len(dims))
    if start < 0 or length < 0 or start + length > dims[dim]:
        raise IndexOutOfRangeError(
            (start, start + length),
            dims[dim],
            detail=f"narrow window is out of bounds on axis {dim}",
        )
    return dim


def narrow(
    data: np.ndarray, dims: Sequence[int], dim: int, start: int, length: int
) -> tuple[np.ndarray, tuple[int, ...]]:
    """
    Extract the contiguous window ``[start, start + length)`` along `dim`.

    Returns
    -------
    tuple[np.ndarray, tuple[int, ...]]
        Flat copy of the window and its shape.
    """
    dim = check_narrow(dims, dim, start, length)
    key = [slice(None)] * len(dims)
    key[dim] = slice(start, start + length)
    block = data.reshape(tuple(dims))[tuple(key)]
    return np.array(block, copy=True).reshape(-1), block.shape


def narrow_assign(
    data: np.ndarray,
    dims: Sequence[int],
    block: np.ndarray,
    block_dims: Sequence[int],
    dim: int,
    start: int,
) -> None:
    """
    Write `block` into the window starting at `start` along `dim`, in place.

    Raises
    ------
    ShapeMismatchError
        If the block's rank differs or any axis other than `dim` disagrees.
    IndexOutOfRangeError
        If the window leaves the axis.
    """
    if len(block_dims) != len(dims):
        raise ShapeMismatchError(
            "narrow_set", block_dims, dims, detail="slice rank must match tensor rank"
        )
    dim = check_narrow(dims, dim, start, block_dims[dim])
    for axis, (a, b) in enumerate(zip(dims, block_dims)):
        if axis != dim and a != b:
            raise ShapeMismatchError(
                "narrow_set",
                block_dims,
                dims,
                detail=f"slice disagrees with tensor on axis {axis}",
            )
    key = [slice(None)] * len(dims)
    key[dim] = slice(start, start + block_dims[dim])
    data.reshape(tuple(dims))[tuple(key)] = block.reshape(tuple(block_dims))
