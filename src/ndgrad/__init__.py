"""
ndgrad: n-dimensional tensors with reverse-mode automatic differentiation.

The public API is re-exported here::

    from ndgrad import Tensor, no_grad, functional
"""

import logging

from .domain import (
    NdGradError,
    ShapeMismatchError,
    IndexOutOfRangeError,
    InvalidAutogradStateError,
    UnsupportedDTypeError,
    Shape,
    DType,
    ITensor,
    Operation,
    IStateful,
)
from .infrastructure import (
    RuntimeConfig,
    get_config,
    set_config,
    config_override,
    no_grad,
    enable_grad,
    set_grad_enabled,
    is_grad_enabled,
    broadcast_shapes,
    Tensor,
    tensor_to_state,
    tensor_from_state,
    extract_state,
    load_state_,
)
from .infrastructure import _functional as functional

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "NdGradError",
    "ShapeMismatchError",
    "IndexOutOfRangeError",
    "InvalidAutogradStateError",
    "UnsupportedDTypeError",
    "Shape",
    "DType",
    "ITensor",
    "Operation",
    "IStateful",
    "RuntimeConfig",
    "get_config",
    "set_config",
    "config_override",
    "no_grad",
    "enable_grad",
    "set_grad_enabled",
    "is_grad_enabled",
    "broadcast_shapes",
    "Tensor",
    "tensor_to_state",
    "tensor_from_state",
    "extract_state",
    "load_state_",
    "functional",
]
