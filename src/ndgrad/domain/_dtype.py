"""
Semantic scalar kinds and their conversion rules.

This module defines `DType`, an enumeration of the element kinds a tensor
buffer may hold, together with the scalar (`parse`) and vectorized (`cast`)
conversion rules between kinds:

- to ``bool``: a value maps to ``value > 0``;
- from ``bool``: ``True`` maps to 1 and ``False`` to 0;
- to an integer kind: truncation toward zero;
- to a float kind: plain numeric conversion.

Anything that is not a number, a bool, or a numeric string fails with
`UnsupportedDTypeError`.
"""

from __future__ import annotations

from enum import Enum
from numbers import Number
from typing import Any, Union

import numpy as np

from ._errors import UnsupportedDTypeError

DTypeLike = Union["DType", str, np.dtype, type]


class DType(Enum):
    """
    Enumeration of supported tensor element kinds.

    Attributes
    ----------
    BOOL : DType
        Boolean truth values.
    INT32 : DType
        32-bit signed integers.
    INT64 : DType
        64-bit signed integers.
    FLOAT32 : DType
        Single-precision floats.
    FLOAT64 : DType
        Double-precision floats.
    """

    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def numpy(self) -> np.dtype:
        """Return the numpy dtype backing buffers of this kind."""
        return np.dtype(self.value)

    @property
    def is_bool(self) -> bool:
        return self is DType.BOOL

    @property
    def is_integer(self) -> bool:
        return self in (DType.INT32, DType.INT64)

    @property
    def is_floating(self) -> bool:
        return self in (DType.FLOAT32, DType.FLOAT64)

    @property
    def accumulator(self) -> np.dtype:
        """
        Return the wider numpy dtype used to accumulate sums of this kind.

        Float kinds accumulate in ``float64``; integer and bool kinds in
        ``int64``.
        """
        if self.is_floating:
            return np.dtype(np.float64)
        return np.dtype(np.int64)

    @staticmethod
    def from_name(name: str) -> "DType":
        """
        Look up a dtype by its stable name (e.g., ``"float32"``).

        Raises
        ------
        UnsupportedDTypeError
            If the name does not denote a supported dtype.
        """
        try:
            return DType(str(name).lower())
        except ValueError:
            raise UnsupportedDTypeError(name, name) from None

    @staticmethod
    def of(value: DTypeLike) -> "DType":
        """
        Normalize a dtype-like value (DType, name, numpy dtype or Python type).

        Raises
        ------
        UnsupportedDTypeError
            If the value does not map onto a supported dtype.
        """
        if isinstance(value, DType):
            return value
        if isinstance(value, str):
            return DType.from_name(value)
        if value is bool:
            return DType.BOOL
        if value is int:
            return DType.INT64
        if value is float:
            return DType.FLOAT64
        try:
            np_dtype = np.dtype(value)
        except TypeError:
            raise UnsupportedDTypeError(str(value), value) from None
        return DType.from_name(np_dtype.name)

    def parse(self, value: Any) -> Union[bool, int, float]:
        """
        Convert a single value into this dtype's Python representation.

        Parameters
        ----------
        value : Any
            A Python/numpy number, a bool, or a numeric string.

        Returns
        -------
        bool | int | float
            The converted scalar.

        Raises
        ------
        UnsupportedDTypeError
            If the value cannot be interpreted as a number.
        """
        if isinstance(value, (bool, np.bool_)):
            number: Any = 1 if value else 0
        elif isinstance(value, (Number, np.number)):
            number = value
        elif isinstance(value, np.ndarray) and value.size == 1:
            return self.parse(value.reshape(()).item())
        elif isinstance(value, str):
            try:
                number = float(value)
            except ValueError:
                raise UnsupportedDTypeError(self.value, value) from None
        else:
            raise UnsupportedDTypeError(self.value, value)

        if isinstance(number, complex):
            raise UnsupportedDTypeError(self.value, value)

        if self is DType.BOOL:
            return bool(number > 0)
        if self.is_integer:
            f = float(number)
            if not np.isfinite(f):
                raise UnsupportedDTypeError(self.value, value)
            return int(number) if isinstance(number, (int, np.integer)) else int(f)
        return float(number)

    def cast(self, array: Any) -> np.ndarray:
        """
        Convert an array-like into a numpy array of this dtype.

        Applies the same rules as `parse`, vectorized.

        Raises
        ------
        UnsupportedDTypeError
            If the input is not numeric (or contains non-finite values
            that cannot be represented in an integer kind).
        """
        arr = np.asarray(array)
        kind = arr.dtype.kind
        if kind in ("U", "S"):
            try:
                arr = arr.astype(np.float64)
            except ValueError:
                raise UnsupportedDTypeError(self.value, array) from None
            kind = "f"
        if kind not in ("b", "i", "u", "f"):
            raise UnsupportedDTypeError(self.value, array)

        if self is DType.BOOL:
            return arr > 0 if kind != "b" else arr.astype(np.bool_)
        if self.is_integer and kind == "f":
            if not np.all(np.isfinite(arr)):
                raise UnsupportedDTypeError(self.value, array)
            return np.trunc(arr).astype(self.numpy)
        return arr.astype(self.numpy)

    def __str__(self) -> str:
        return self.value
