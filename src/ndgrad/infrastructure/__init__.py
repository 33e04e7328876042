from ._config import RuntimeConfig, get_config, set_config, config_override
from ._grad_mode import no_grad, enable_grad, set_grad_enabled, is_grad_enabled
from ._broadcasting import broadcast_shapes, broadcast_data, reduce_to_shape
from ._autograd import topological_order
from .tensor import Tensor
from .state import tensor_to_state, tensor_from_state, extract_state, load_state_
from ._functional import (
    relu,
    leaky_relu,
    gelu,
    sigmoid,
    tanh,
    softmax,
    cross_entropy_loss,
    mse_loss,
)

__all__ = [
    "RuntimeConfig",
    "get_config",
    "set_config",
    "config_override",
    "no_grad",
    "enable_grad",
    "set_grad_enabled",
    "is_grad_enabled",
    "broadcast_shapes",
    "broadcast_data",
    "reduce_to_shape",
    "topological_order",
    "Tensor",
    "tensor_to_state",
    "tensor_from_state",
    "extract_state",
    "load_state_",
    "relu",
    "leaky_relu",
    "gelu",
    "sigmoid",
    "tanh",
    "softmax",
    "cross_entropy_loss",
    "mse_loss",
]
