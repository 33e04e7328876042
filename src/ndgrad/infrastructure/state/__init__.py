from ._tensor_state import (
    tensor_to_state,
    tensor_from_state,
    extract_state,
    load_state_,
)

__all__ = [
    "tensor_to_state",
    "tensor_from_state",
    "extract_state",
    "load_state_",
]
