"""
Explicit state export interface.

Objects that own tensors (layers, models, optimizer slots) expose them to
serializers through `IStateful.named_tensors()`, which returns an ordered
list of ``(path, tensor)`` pairs. Serializers never walk object fields at
runtime; the owner decides which tensors are part of its state and under
which dotted path.
"""

from typing import Protocol, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class IStateful(Protocol):
    """
    Interface for objects whose state is a set of named tensors.
    """

    def named_tensors(self) -> list[tuple[str, ITensor]]:
        """
        Return the object's tensors in a stable order.

        Returns
        -------
        list[tuple[str, ITensor]]
            ``(path, tensor)`` pairs. Paths are dotted (e.g., ``"fc1.weight"``)
            and must be unique within the object.
        """
        ...
