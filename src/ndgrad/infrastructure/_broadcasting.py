"""
Broadcasting rules.

This module implements the broadcasting primitives shared by every binary
operation and by the autograd engine:

- `broadcast_shapes`: the joint shape of two operands.
- `broadcast_data`: expand a flat buffer to a larger shape using explicit
  stride arithmetic (a size-1 source axis contributes zero offset).
- `reduce_to_shape`: the inverse of broadcasting. It sum-reduces a gradient
  back to an operand's pre-broadcast shape using differentiable `sum` and
  `reshape` calls on the tensor, so the reduction itself is recorded in the
  graph when gradients are enabled.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ..domain._errors import ShapeMismatchError
from ..domain._shape import Shape, ShapeLike
from ._indexing import compute_strides


def broadcast_shapes(a: ShapeLike, b: ShapeLike) -> Shape:
    """
    Compute the broadcast shape of two shapes.

    Shapes are right-aligned and the shorter one is padded with leading
    ones. Each output dimension is the non-1 member of the pair, which
    requires the pair to be equal or to contain a 1.

    Raises
    ------
    ShapeMismatchError
        If some aligned pair of dimensions differs and neither is 1.
    """
    a, b = Shape.of(a), Shape.of(b)
    rank = max(a.rank(), b.rank())
    pa = (1,) * (rank - a.rank()) + a.dims
    pb = (1,) * (rank - b.rank()) + b.dims
    out = []
    for da, db in zip(pa, pb):
        if da != db and da != 1 and db != 1:
            raise ShapeMismatchError("broadcast", a.dims, b.dims)
        out.append(db if da == 1 else da)
    return Shape(out)


def _sum_axes(src: Sequence[int], target: Sequence[int]) -> tuple[int, tuple[int, ...]]:
    """
    Return ``(offset, keep_axes)`` for reducing `src` to `target`.

    ``offset`` is the rank difference; ``keep_axes`` are the axes (in source
    numbering) where the target has size 1 and the source does not.

    Raises
    ------
    ShapeMismatchError
        If `target` could not have been broadcast to `src`.
    """
    if len(target) > len(src):
        raise ShapeMismatchError(
            "reduce_to_shape", src, target, detail="target rank exceeds source rank"
        )
    offset = len(src) - len(target)
    axes = []
    for i, t in enumerate(target):
        s = src[i + offset]
        if t == s:
            continue
        if t != 1:
            raise ShapeMismatchError(
                "reduce_to_shape", src, target, detail=f"axis {i} is not broadcastable"
            )
        axes.append(i + offset)
    return offset, tuple(axes)


def broadcast_data(
    data: np.ndarray, source_shape: ShapeLike, target_shape: ShapeLike
) -> np.ndarray:
    """
    Expand a flat row-major buffer from `source_shape` to `target_shape`.

    For every output flat index, the multi-index is unravelled and mapped to
    a source flat index using the source strides, where any (left-padded)
    source axis of size 1 contributes zero offset.

    Parameters
    ----------
    data : np.ndarray
        Flat source buffer with ``Shape(source_shape).size()`` elements.
    source_shape : ShapeLike
        Shape of `data`.
    target_shape : ShapeLike
        Shape to expand to. Must be a broadcast of `source_shape`.

    Returns
    -------
    np.ndarray
        A new flat buffer with ``Shape(target_shape).size()`` elements.

    Raises
    ------
    ShapeMismatchError
        If `source_shape` cannot be broadcast to `target_shape`.
    """
    src, tgt = Shape.of(source_shape), Shape.of(target_shape)
    if src == tgt:
        return np.array(data, copy=True).reshape(-1)
    if broadcast_shapes(src, tgt) != tgt:
        raise ShapeMismatchError("broadcast_to", src.dims, tgt.dims)

    padded = (1,) * (tgt.rank() - src.rank()) + src.dims
    src_strides = compute_strides(padded)
    tgt_strides = compute_strides(tgt.dims)

    flat = np.arange(tgt.size(), dtype=np.int64)
    source_index = np.zeros(tgt.size(), dtype=np.int64)
    for axis, n in enumerate(tgt.dims):
        position = (flat // tgt_strides[axis]) % max(n, 1)
        if padded[axis] > 1:
            source_index += position * src_strides[axis]
    return np.asarray(data).reshape(-1)[source_index]


def reduce_axes(source_shape: ShapeLike, target_shape: ShapeLike) -> tuple[int, ...]:
    """
    Axes (in source numbering) a broadcast reduction must sum over.

    The leading ``rank(source) - rank(target)`` axes come first, followed by
    the axes where the target has size 1 and the source does not.
    """
    src, tgt = Shape.of(source_shape), Shape.of(target_shape)
    offset, axes = _sum_axes(src.dims, tgt.dims)
    return tuple(range(offset)) + axes


def reduce_to_shape(tensor: Any, target_shape: ShapeLike) -> Any:
    """
    Sum-reduce a broadcast tensor back to `target_shape`.

    Leading axes are summed with ``keepdim=True`` one at a time, then every
    axis where the target has size 1 and the source does not. Finally the
    result is reshaped to the target. The reduction is expressed with the
    tensor's own `sum` and `reshape`, so it is differentiable.

    Parameters
    ----------
    tensor : Tensor
        The (broadcast) tensor to reduce.
    target_shape : ShapeLike
        The pre-broadcast shape.

    Returns
    -------
    Tensor
        `tensor` itself if its shape already equals the target, otherwise a
        new tensor with the target shape.

    Raises
    ------
    ShapeMismatchError
        If `target_shape` is not a valid pre-broadcast shape of the tensor.
    """
    target = Shape.of(target_shape)
    if tensor.shape == target:
        return tensor
    out = tensor
    for axis in reduce_axes(tensor.shape, target):
        out = out.sum(axis, keepdim=True)
    return out.reshape(target.dims)
