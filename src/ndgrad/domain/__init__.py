from ._errors import (
    NdGradError,
    ShapeMismatchError,
    IndexOutOfRangeError,
    InvalidAutogradStateError,
    UnsupportedDTypeError,
)
from ._shape import Shape, ShapeLike
from ._dtype import DType, DTypeLike
from ._tensor import ITensor
from ._operation import Operation
from ._stateful import IStateful

__all__ = [
    "NdGradError",
    "ShapeMismatchError",
    "IndexOutOfRangeError",
    "InvalidAutogradStateError",
    "UnsupportedDTypeError",
    "Shape",
    "ShapeLike",
    "DType",
    "DTypeLike",
    "ITensor",
    "Operation",
    "IStateful",
]
