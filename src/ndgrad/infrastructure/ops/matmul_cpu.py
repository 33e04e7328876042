"""
CPU matrix multiplication kernels for ndgrad.

This module provides the batched matrix product used by the MatMul
operation. Two backends are available:

- ``"block"``: a recursive block kernel. The (rows, inner, cols) extents are
  halved until any of them is at or below the block size, and the base case
  computes each dot product with an explicit triple loop in a wide
  accumulator dtype. This is the reference implementation.
- ``"numpy"``: `np.matmul`, the fast path.

Both backends take numpy arrays of equal rank (>= 2) whose leading
"batch" axes are broadcast against each other, and return an array in the
accumulator dtype. Casting back to the tensor dtype is the caller's job.

Non-goals
---------
- Native or GPU kernels
- Strassen-style algebraic speedups
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

import numpy as np

from ...domain._errors import ShapeMismatchError
from .._broadcasting import broadcast_shapes

logger = logging.getLogger(__name__)


def _accumulator_for(a: np.ndarray, b: np.ndarray) -> np.dtype:
    if a.dtype.kind == "f" or b.dtype.kind == "f":
        return np.dtype(np.float64)
    return np.dtype(np.int64)


def _check_operands(a: np.ndarray, b: np.ndarray) -> tuple[int, ...]:
    """
    Validate matmul operands and return the broadcast batch shape.

    Raises
    ------
    ShapeMismatchError
        If ranks differ or are below 2, the inner dimensions disagree, or the
        batch axes cannot be broadcast.
    """
    if a.ndim != b.ndim or a.ndim < 2:
        raise ShapeMismatchError(
            "matmul", a.shape, b.shape, detail="operands must have equal rank >= 2"
        )
    if a.shape[-1] != b.shape[-2]:
        raise ShapeMismatchError(
            "matmul",
            a.shape,
            b.shape,
            detail=f"inner dimensions differ ({a.shape[-1]} != {b.shape[-2]})",
        )
    return broadcast_shapes(a.shape[:-2], b.shape[:-2]).dims


def _multiply_base(
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    rows: tuple[int, int],
    inner: tuple[int, int],
    cols: tuple[int, int],
) -> None:
    """
    Add ``a[rows, inner] @ b[inner, cols]`` into ``out[rows, cols]``.

    Every dot product is accumulated in ``out.dtype``.
    """
    acc_type = out.dtype.type
    for i in range(rows[0], rows[1]):
        for j in range(cols[0], cols[1]):
            total = acc_type(0)
            for k in range(inner[0], inner[1]):
                total += acc_type(a[i, k]) * acc_type(b[k, j])
            out[i, j] += total


def _multiply_blocks(
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    rows: tuple[int, int],
    inner: tuple[int, int],
    cols: tuple[int, int],
    block_size: int,
    depth: int,
) -> int:
    """
    Recursively multiply one 2-D sub-problem and return the maximum depth.

    Each output quadrant receives the contributions of both halves of the
    inner range, so the recursion covers every (row, inner, col) triple
    exactly once.
    """
    n_rows = rows[1] - rows[0]
    n_inner = inner[1] - inner[0]
    n_cols = cols[1] - cols[0]
    if n_rows <= block_size or n_inner <= block_size or n_cols <= block_size:
        _multiply_base(a, b, out, rows, inner, cols)
        return depth

    r_mid = rows[0] + n_rows // 2
    k_mid = inner[0] + n_inner // 2
    c_mid = cols[0] + n_cols // 2

    deepest = depth
    for r in ((rows[0], r_mid), (r_mid, rows[1])):
        for c in ((cols[0], c_mid), (c_mid, cols[1])):
            for k in ((inner[0], k_mid), (k_mid, inner[1])):
                deepest = max(
                    deepest,
                    _multiply_blocks(a, b, out, r, k, c, block_size, depth + 1),
                )
    return deepest


def block_matmul(
    a: np.ndarray,
    b: np.ndarray,
    block_size: int = 32,
    accumulator: Optional[np.dtype] = None,
) -> np.ndarray:
    """
    Batched matrix product using the recursive block kernel.

    Parameters
    ----------
    a : np.ndarray
        Left operand of shape ``(*batch_a, M, K)``.
    b : np.ndarray
        Right operand of shape ``(*batch_b, K, N)`` with the same rank as `a`.
    block_size : int, optional
        Extent at or below which recursion stops. Defaults to 32.
    accumulator : np.dtype, optional
        Dtype of the result and of every partial sum. Defaults to
        ``float64`` if either operand is floating, else ``int64``.

    Returns
    -------
    np.ndarray
        Array of shape ``(*broadcast(batch_a, batch_b), M, N)``.

    Raises
    ------
    ShapeMismatchError
        If the operands are not compatible.
    ValueError
        If `block_size` is smaller than 1.
    """
    if block_size < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")

    batch = _check_operands(a, b)
    acc = np.dtype(accumulator) if accumulator is not None else _accumulator_for(a, b)
    M, K = a.shape[-2:]
    N = b.shape[-1]

    a_b = np.broadcast_to(a, batch + (M, K))
    b_b = np.broadcast_to(b, batch + (K, N))
    out = np.zeros(batch + (M, N), dtype=acc)

    deepest = 0
    for idx in np.ndindex(*batch):
        deepest = max(
            deepest,
            _multiply_blocks(
                a_b[idx], b_b[idx], out[idx], (0, M), (0, K), (0, N), block_size, 0
            ),
        )
    logger.debug(
        "block_matmul %s @ %s -> %s (block_size=%d, depth=%d)",
        a.shape,
        b.shape,
        out.shape,
        block_size,
        deepest,
    )
    return out


def numpy_matmul(
    a: np.ndarray, b: np.ndarray, accumulator: Optional[np.dtype] = None
) -> np.ndarray:
    """
    Batched matrix product using `np.matmul` in the accumulator dtype.

    Accepts and validates the same operands as `block_matmul`.
    """
    _check_operands(a, b)
    acc = np.dtype(accumulator) if accumulator is not None else _accumulator_for(a, b)
    return np.matmul(a.astype(acc, copy=False), b.astype(acc, copy=False))


def matmul_forward_cpu(
    a: np.ndarray,
    b: np.ndarray,
    *,
    backend: str = "block",
    block_size: int = 32,
    accumulator: Optional[np.dtype] = None,
    warn_elements: Optional[int] = None,
) -> np.ndarray:
    """
    Dispatch a batched matrix product to the selected backend.

    Parameters
    ----------
    backend : str
        ``"block"`` or ``"numpy"``.
    warn_elements : int, optional
        If given and the block backend is asked for a result with more
        elements than this, a `RuntimeWarning` is emitted.

    Raises
    ------
    ValueError
        If the backend name is unknown.
    """
    logger.debug("matmul backend=%s %s @ %s", backend, a.shape, b.shape)
    if backend == "numpy":
        return numpy_matmul(a, b, accumulator)
    if backend != "block":
        raise ValueError(f"Unknown matmul backend {backend!r}")

    if warn_elements is not None and a.ndim >= 2 and b.ndim >= 2:
        n_out = int(np.prod(a.shape[:-1], dtype=np.int64)) * int(b.shape[-1])
        if n_out > warn_elements:
            warnings.warn(
                f"ndgrad block matmul kernel is multiplying large operands "
                f"{a.shape} @ {b.shape}; consider matmul_backend='numpy'.",
                RuntimeWarning,
                stacklevel=2,
            )
    return block_matmul(a, b, block_size, accumulator)
