"""
Concrete numpy-backed Tensor.

This module defines `Tensor`, the concrete `ITensor` implementation. A
tensor owns:

- a `Shape` and a `DType`,
- a contiguous 1-D numpy buffer of ``shape.size()`` elements in row-major
  order whose element type matches the dtype,
- autograd bookkeeping: `requires_grad`, `is_leaf`, `grad`, `parents`,
  `operation`, plus an optional debugging `label`.

Leaves are created by the constructor and the factory classmethods.
Non-leaves are created only by `Operation.forward()`, which stamps them via
`_set_history`. Gradients are written only through `accumulate_grad`.

The operation vocabulary (arithmetic, reductions, activations, layout and
indexing) is provided by the mixins in `ndgrad.infrastructure.tensor.mixins`.
"""

from __future__ import annotations

import threading
from typing import Any, Optional, Sequence, Union

import numpy as np
from typing_extensions import Self

from ...domain._dtype import DType, DTypeLike
from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape, ShapeLike
from ...domain._tensor import Number
from .._autograd import clear_graph, run_backward
from .._config import get_config
from .._grad_mode import is_grad_enabled
from .._indexing import normalize_dim
from ..state._tensor_state import tensor_from_state, tensor_to_state
from .mixins import _TensorAllMixin


def _shape_from_args(shape: Sequence[Any]) -> Shape:
    if len(shape) == 1 and not isinstance(shape[0], (int, np.integer)):
        return Shape.of(shape[0])
    return Shape.of(tuple(shape))


class Tensor(_TensorAllMixin):
    """
    N-dimensional array with reverse-mode automatic differentiation.

    Parameters
    ----------
    shape : ShapeLike, optional
        Shape of the zero-initialized buffer. Defaults to ``()`` (a scalar).
    dtype : DTypeLike, optional
        Element kind. Defaults to the configured `default_dtype`.
    requires_grad : bool, optional
        Whether gradients are tracked. Defaults to the current grad mode
        (see `no_grad`).
    label : str, optional
        Free-form name shown in `repr`.

    Notes
    -----
    - Binary operations accept Python scalars, which are lifted to 0-d
      constant tensors of this tensor's dtype.
    - `==` is identity equality so tensors can be used as graph nodes; use
      `equals()` for structural equality.
    """

    def __init__(
        self,
        shape: ShapeLike = (),
        dtype: Optional[DTypeLike] = None,
        *,
        requires_grad: Optional[bool] = None,
        label: Optional[str] = None,
    ) -> None:
        self._shape = Shape.of(shape)
        self._dtype = get_config().dtype if dtype is None else DType.of(dtype)
        self._data = np.zeros(self._shape.size(), dtype=self._dtype.numpy)

        self._requires_grad = (
            is_grad_enabled() if requires_grad is None else bool(requires_grad)
        )
        self._is_leaf = True
        self._grad: Optional["Tensor"] = None
        self._parents: tuple["Tensor", ...] = ()
        self._operation: Optional[Any] = None
        self._grad_lock = threading.Lock()
        self.label = label

    # ---------------------------------------------------------------------
    # Internal construction
    # ---------------------------------------------------------------------
    @classmethod
    def _from_numpy(
        cls,
        arr: Any,
        dtype: Optional[DTypeLike] = None,
        *,
        requires_grad: bool = False,
    ) -> Self:
        """
        Wrap an array as a new tensor without consulting the grad mode.

        The array is cast through the dtype rules and copied into a fresh
        flat buffer. Used by operations to allocate outputs.
        """
        arr = np.asarray(arr)
        dt = DType.of(arr.dtype) if dtype is None else DType.of(dtype)
        out = cls.__new__(cls)
        out._shape = Shape(arr.shape)
        out._dtype = dt
        out._data = np.array(dt.cast(arr), copy=True).reshape(-1)
        out._requires_grad = bool(requires_grad)
        out._is_leaf = True
        out._grad = None
        out._parents = ()
        out._operation = None
        out._grad_lock = threading.Lock()
        out.label = None
        return out

    def _set_history(self, operation: Any, parents: Sequence["Tensor"]) -> None:
        """
        Stamp this tensor as the output of `operation`.

        Every operation output is a non-leaf whose `requires_grad` is the OR
        of its parents'. The grad mode is not consulted here; it only sets
        the default for newly built leaves.
        """
        self._parents = tuple(parents)
        self._operation = operation
        self._requires_grad = any(p.requires_grad for p in self._parents)
        self._is_leaf = False

    def _clear_history(self) -> None:
        self._grad = None
        self._operation = None
        self._parents = ()

    # ---------------------------------------------------------------------
    # Factories
    # ---------------------------------------------------------------------
    @classmethod
    def zeros(
        cls, *shape: Any, dtype: Optional[DTypeLike] = None, requires_grad: Optional[bool] = None
    ) -> Self:
        """Create a tensor filled with zeros. ``zeros(2, 3)`` or ``zeros((2, 3))``."""
        return cls(_shape_from_args(shape), dtype, requires_grad=requires_grad)

    @classmethod
    def ones(
        cls, *shape: Any, dtype: Optional[DTypeLike] = None, requires_grad: Optional[bool] = None
    ) -> Self:
        """Create a tensor filled with ones."""
        return cls.full(_shape_from_args(shape), 1, dtype=dtype, requires_grad=requires_grad)

    @classmethod
    def full(
        cls,
        shape: ShapeLike,
        value: Number,
        *,
        dtype: Optional[DTypeLike] = None,
        requires_grad: Optional[bool] = None,
    ) -> Self:
        """Create a tensor filled with `value`, parsed through the dtype."""
        out = cls(shape, dtype, requires_grad=requires_grad)
        return out.fill_(value)

    @classmethod
    def random(
        cls,
        shape: ShapeLike,
        low: float = 0.0,
        high: float = 1.0,
        *,
        dtype: Optional[DTypeLike] = None,
        seed: Optional[int] = None,
        requires_grad: Optional[bool] = None,
    ) -> Self:
        """
        Create a tensor of uniform samples from ``[low, high)``.

        Integer dtypes truncate the samples toward zero.
        """
        if low > high:
            raise ValueError(f"random: low ({low}) must not exceed high ({high})")
        rng = np.random.default_rng(seed)
        out = cls(shape, dtype, requires_grad=requires_grad)
        samples = rng.uniform(low, high, size=out.shape.dims)
        out._data = out.dtype.cast(samples).reshape(-1)
        return out

    @classmethod
    def randint(
        cls,
        low: int,
        high: int,
        shape: ShapeLike,
        *,
        dtype: DTypeLike = DType.INT64,
        seed: Optional[int] = None,
        requires_grad: Optional[bool] = None,
    ) -> Self:
        """Create a tensor of uniform integers from ``[low, high)``."""
        if low >= high:
            raise ValueError(f"randint: low ({low}) must be smaller than high ({high})")
        rng = np.random.default_rng(seed)
        out = cls(shape, dtype, requires_grad=requires_grad)
        out._data = out.dtype.cast(rng.integers(low, high, size=out.shape.dims)).reshape(-1)
        return out

    @classmethod
    def of(
        cls,
        values: Any,
        *,
        dtype: Optional[DTypeLike] = None,
        requires_grad: Optional[bool] = None,
    ) -> Self:
        """
        Create a tensor from a scalar or (nested) sequence of numbers.

        Without an explicit dtype, booleans map to ``bool``, integers to
        ``int64`` and anything else to the configured default dtype.

        Raises
        ------
        UnsupportedDTypeError
            If the values are not numeric.
        ValueError
            If a nested sequence is ragged.
        """
        arr = np.asarray(values)
        if dtype is None:
            if arr.dtype.kind == "b":
                dtype = DType.BOOL
            elif arr.dtype.kind in ("i", "u"):
                dtype = DType.INT64
            else:
                dtype = get_config().dtype
        out = cls._from_numpy(arr, dtype)
        out._requires_grad = is_grad_enabled() if requires_grad is None else bool(requires_grad)
        return out

    @classmethod
    def range(cls, *shape: Any, dtype: DTypeLike = DType.INT64) -> Self:
        """Create a tensor holding ``0 .. size - 1`` laid out in `shape`."""
        s = _shape_from_args(shape)
        return cls.of(np.arange(s.size()).reshape(s.dims), dtype=dtype)

    @classmethod
    def arange(
        cls, start: int, stop: int, step: int = 1, *, dtype: DTypeLike = DType.INT64
    ) -> Self:
        """
        Create a 1-D tensor with values from ``[start, stop)`` spaced by `step`.

        Raises
        ------
        ValueError
            If ``start >= stop`` or `step` is not positive.
        """
        if start >= stop:
            raise ValueError(
                f"The start of the range must be smaller than its end ({start} >= {stop})"
            )
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        return cls.of(np.arange(start, stop, step), dtype=dtype)

    @classmethod
    def from_numpy(
        cls,
        arr: np.ndarray,
        *,
        dtype: Optional[DTypeLike] = None,
        requires_grad: Optional[bool] = None,
    ) -> Self:
        """Create a tensor holding a copy of a numpy array."""
        out = cls._from_numpy(arr, dtype)
        out._requires_grad = is_grad_enabled() if requires_grad is None else bool(requires_grad)
        return out

    @classmethod
    def from_state(cls, state: dict) -> Self:
        """Create a leaf tensor from a ``{"dtype", "shape", "data"}`` triple."""
        return tensor_from_state(state, cls)

    # ---------------------------------------------------------------------
    # Storage
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def data(self) -> np.ndarray:
        """
        Return the flat row-major storage buffer.

        Returns
        -------
        np.ndarray
            1-D array of ``shape.size()`` elements. Writing into it mutates
            the tensor.
        """
        return self._data

    def size(self, dim: Optional[int] = None) -> int:
        """Return the total element count, or the extent of axis `dim`."""
        if dim is None:
            return self._shape.size()
        return self._shape[normalize_dim(dim, self._shape.rank())]

    def dim(self) -> int:
        return self._shape.rank()

    def numel(self) -> int:
        return self._shape.size()

    # ---------------------------------------------------------------------
    # Autograd bookkeeping
    # ---------------------------------------------------------------------
    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._requires_grad = bool(value)

    @property
    def is_leaf(self) -> bool:
        return self._is_leaf

    @property
    def grad(self) -> Optional["Tensor"]:
        return self._grad

    @property
    def parents(self) -> tuple["Tensor", ...]:
        return self._parents

    @property
    def operation(self) -> Optional[Any]:
        return self._operation

    def accumulate_grad(self, grad: "Tensor") -> None:
        """
        Add `grad` into this tensor's gradient.

        A detached copy of `grad` (cast to this tensor's dtype) is stored the
        first time; later calls add into it. Calls are serialized per tensor.

        Raises
        ------
        ShapeMismatchError
            If `grad` does not have this tensor's shape.
        """
        if not self._requires_grad:
            return
        if grad.shape != self._shape:
            raise ShapeMismatchError(
                "accumulate_grad",
                grad.shape.dims,
                self._shape.dims,
                detail="gradient must have the owner's shape",
            )
        incoming = self._dtype.cast(grad.data)
        with self._grad_lock:
            if self._grad is None:
                self._grad = type(self)._from_numpy(
                    incoming.reshape(self._shape.dims), self._dtype
                )
            else:
                total = self._grad.data + incoming
                self._grad = type(self)._from_numpy(
                    total.reshape(self._shape.dims), self._dtype
                )

    def backward(self, grad: Optional["Tensor"] = None) -> None:
        """
        Backpropagate from this tensor.

        Parameters
        ----------
        grad : Tensor, optional
            Seed gradient with this tensor's shape. Defaults to ones.

        Raises
        ------
        InvalidAutogradStateError
            If this tensor does not require gradients.
        """
        run_backward(self, grad)

    def zero_grad(self) -> None:
        """Clear `grad`, `operation` and `parents` on every reachable tensor."""
        clear_graph(self)

    def update(
        self,
        new: Union["Tensor", np.ndarray, Number],
        detach: bool = True,
        allow_reshape: bool = False,
    ) -> Self:
        """
        Commit new values into this tensor, in place.

        Parameters
        ----------
        new : Tensor | np.ndarray | Number
            Replacement values. A scalar is broadcast to this tensor's shape.
        detach : bool, optional
            If True (default), the tensor becomes a leaf: `operation`,
            `parents` and `grad` are cleared. If False, the graph history and
            gradient of `new` are adopted.
        allow_reshape : bool, optional
            Permit `new` to have a different shape.

        Raises
        ------
        ShapeMismatchError
            If shapes differ and `allow_reshape` is False.
        """
        if not isinstance(new, Tensor):
            arr = np.asarray(new)
            if arr.ndim == 0:
                arr = np.full(self._shape.dims, arr)
            new = type(self)._from_numpy(arr, self._dtype)

        if new.shape != self._shape and not allow_reshape:
            raise ShapeMismatchError(
                "update", new.shape.dims, self._shape.dims, detail="use allow_reshape=True"
            )

        self._shape = new.shape
        self._data = np.array(self._dtype.cast(new.data), copy=True).reshape(-1)
        if detach:
            self._clear_history()
            self._is_leaf = True
        else:
            self._requires_grad = new.requires_grad
            self._grad = new.grad
            self._operation = new.operation
            self._parents = new.parents
            self._is_leaf = new.is_leaf
        return self

    # ---------------------------------------------------------------------
    # Copies and conversion
    # ---------------------------------------------------------------------
    def clone(self) -> Self:
        """
        Copy the buffer.

        If this tensor requires gradients, the copy shares its `operation`,
        `parents` and `grad`, so gradients reaching the copy flow into the
        same history.
        """
        out = type(self)._from_numpy(self._data.reshape(self._shape.dims), self._dtype)
        if self._requires_grad:
            out._requires_grad = True
            out._grad = self._grad
            out._operation = self._operation
            out._parents = self._parents
            out._is_leaf = self._is_leaf
        out.label = self.label
        return out

    def detach(self, requires_grad: bool = False) -> Self:
        """Return a leaf copy of this tensor with no graph history."""
        out = type(self)._from_numpy(
            self._data.reshape(self._shape.dims), self._dtype, requires_grad=requires_grad
        )
        out.label = self.label
        return out

    def as_dtype(self, dtype: DTypeLike) -> Self:
        """Return a leaf copy converted to `dtype` through the dtype rules."""
        out = type(self)._from_numpy(self._data.reshape(self._shape.dims), dtype)
        out._requires_grad = self._requires_grad
        out.label = self.label
        return out

    def as_float(self) -> Self:
        return self.as_dtype(DType.FLOAT32)

    def as_double(self) -> Self:
        return self.as_dtype(DType.FLOAT64)

    def as_int(self) -> Self:
        return self.as_dtype(DType.INT32)

    def as_long(self) -> Self:
        return self.as_dtype(DType.INT64)

    def as_bool(self) -> Self:
        return self.as_dtype(DType.BOOL)

    def to_numpy(self) -> np.ndarray:
        """Return a shaped copy of the buffer."""
        return self._data.reshape(self._shape.dims).copy()

    def copy_from_numpy(self, arr: np.ndarray) -> None:
        """
        Overwrite the buffer with the contents of `arr`, in place.

        Raises
        ------
        ShapeMismatchError
            If `arr` does not have exactly this tensor's shape.
        """
        arr = np.asarray(arr)
        if arr.shape != self._shape.dims:
            raise ShapeMismatchError("copy_from_numpy", arr.shape, self._shape.dims)
        self._data = np.array(self._dtype.cast(arr), copy=True).reshape(-1)

    def tolist(self) -> Any:
        return self.to_numpy().tolist()

    def fill_(self, value: Number) -> Self:
        """Fill every element with `value` (parsed through the dtype), in place."""
        self._data[...] = self._dtype.parse(value)
        return self

    def equals(self, other: object) -> bool:
        """Structural equality: same shape, same dtype and same elements."""
        return (
            isinstance(other, Tensor)
            and other.shape == self._shape
            and other.dtype == self._dtype
            and bool(np.array_equal(other.data, self._data))
        )

    def to_state(self) -> dict:
        """Export this tensor as a ``{"dtype", "shape", "data"}`` triple."""
        return tensor_to_state(self)

    def __len__(self) -> int:
        if self._shape.rank() == 0:
            raise TypeError("len() of a 0-d tensor")
        return self._shape[0]

    def __repr__(self) -> str:
        label = f", label={self.label!r}" if self.label is not None else ""
        grad = ", requires_grad=True" if self._requires_grad else ""
        return (
            f"Tensor(shape={self._shape}, dtype={self._dtype}, "
            f"data={self.to_numpy().tolist()}{grad}{label})"
        )
