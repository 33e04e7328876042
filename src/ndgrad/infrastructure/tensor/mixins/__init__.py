from ._shape_and_indexing import TensorMixinShapeAndIndexing
from ._arithmetic import TensorMixinArithmetic
from ._reduction import TensorMixinReduction
from ._unary import TensorMixinUnary


class _TensorAllMixin(
    TensorMixinShapeAndIndexing,
    TensorMixinArithmetic,
    TensorMixinReduction,
    TensorMixinUnary,
):
    pass


__all__ = [_TensorAllMixin.__name__]
