"""
Tensor state export and import.

A tensor's state is a plain ``{"dtype": str, "shape": list[int], "data":
list}`` triple with a flat row-major ``data`` list. Objects that own tensors
expose them through `IStateful.named_tensors()`; `extract_state` and
`load_state_` move whole objects in and out of ordered ``{path: state}``
dictionaries. No file format is implied: callers choose how to persist the
dictionaries (JSON, msgpack, ...).
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Mapping

import numpy as np

from ...domain._dtype import DType
from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape
from ...domain._stateful import IStateful


def tensor_to_state(tensor: Any) -> Dict[str, Any]:
    """
    Export a tensor as a ``{"dtype", "shape", "data"}`` triple.

    Parameters
    ----------
    tensor : ITensor
        Tensor to export. Only values are exported, never graph state.

    Returns
    -------
    dict
        ``dtype`` is the stable dtype name, ``shape`` a list of ints and
        ``data`` the flat row-major element list.
    """
    return {
        "dtype": str(tensor.dtype),
        "shape": list(tensor.shape.dims),
        "data": np.asarray(tensor.data).tolist(),
    }


def _state_array(state: Mapping[str, Any]) -> tuple[DType, np.ndarray]:
    for key in ("dtype", "shape", "data"):
        if key not in state:
            raise KeyError(f"Tensor state is missing '{key}'")
    dtype = DType.from_name(state["dtype"])
    shape = Shape.of(state["shape"])
    data = dtype.cast(np.asarray(state["data"]).reshape(-1))
    if data.size != shape.size():
        raise ShapeMismatchError(
            "tensor_from_state",
            (data.size,),
            shape.dims,
            detail="element count does not match shape",
        )
    return dtype, data.reshape(shape.dims)


def tensor_from_state(state: Mapping[str, Any], tensor_cls: Any = None) -> Any:
    """
    Rebuild a leaf tensor from a state triple.

    Parameters
    ----------
    state : Mapping[str, Any]
        A triple produced by `tensor_to_state`.
    tensor_cls : type, optional
        Tensor class to instantiate. Defaults to `ndgrad.Tensor`.

    Raises
    ------
    KeyError
        If a field is missing.
    UnsupportedDTypeError
        If the dtype name is unknown or the data cannot be cast.
    ShapeMismatchError
        If the element count does not match the shape.
    """
    if tensor_cls is None:
        from ..tensor._tensor import Tensor as tensor_cls

    dtype, arr = _state_array(state)
    return tensor_cls.from_numpy(arr, dtype=dtype)


def extract_state(obj: IStateful) -> "OrderedDict[str, Dict[str, Any]]":
    """
    Export every named tensor of `obj`, in `named_tensors()` order.

    Raises
    ------
    TypeError
        If `obj` does not implement `named_tensors()`.
    """
    if not isinstance(obj, IStateful):
        raise TypeError(
            f"{type(obj).__name__} does not implement named_tensors()"
        )
    out: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for name, tensor in obj.named_tensors():
        out[str(name)] = tensor_to_state(tensor)
    return out


def load_state_(obj: IStateful, states: Mapping[str, Mapping[str, Any]]) -> None:
    """
    In-place load of `obj`'s named tensors from a ``{path: state}`` mapping.

    Each tensor keeps its own dtype; stored values are cast into it.
    Committed tensors become leaves with cleared gradients.

    Raises
    ------
    TypeError
        If `obj` does not implement `named_tensors()`.
    KeyError
        If a tensor path is missing from `states`.
    ShapeMismatchError
        If a stored shape differs from the tensor's shape.
    """
    if not isinstance(obj, IStateful):
        raise TypeError(
            f"{type(obj).__name__} does not implement named_tensors()"
        )
    for name, tensor in obj.named_tensors():
        key = str(name)
        if key not in states:
            raise KeyError(f"Missing tensor in state: '{key}'")
        _, arr = _state_array(states[key])
        if tuple(arr.shape) != tensor.shape.dims:
            raise ShapeMismatchError(
                f"load_state_[{key}]", tensor.shape.dims, arr.shape
            )
        tensor.update(arr, detach=True)
