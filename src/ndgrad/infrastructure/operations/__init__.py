from ._arithmetic import BinaryOperation, Add, Sub, Mul, Div, Pow
from ._unary import UnaryOperation, Exp, Log, Root, Clip, ReLU
from ._activation import Sigmoid, Tanh, GELU, LeakyReLU
from ._memory import Reshape, Transpose, Broadcast
from ._reduction import Sum, Mean
from ._matmul import MatMul
from ._loss import CrossEntropyLoss, MSE

__all__ = [
    "BinaryOperation",
    "Add",
    "Sub",
    "Mul",
    "Div",
    "Pow",
    "UnaryOperation",
    "Exp",
    "Log",
    "Root",
    "Clip",
    "ReLU",
    "Sigmoid",
    "Tanh",
    "GELU",
    "LeakyReLU",
    "Reshape",
    "Transpose",
    "Broadcast",
    "Sum",
    "Mean",
    "MatMul",
    "CrossEntropyLoss",
    "MSE",
]
