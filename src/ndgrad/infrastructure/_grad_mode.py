"""
Thread-local gradient-recording mode.

New leaf tensors take their default `requires_grad` from
`is_grad_enabled()`. Operation outputs ignore the mode and inherit
`requires_grad` from their parents. The mode is stored per thread, so a
`no_grad()` scope opened on one thread never affects another.

All three context managers are re-entrant and can be used as decorators;
leaving a scope restores whatever mode was active when it was entered.
"""

from __future__ import annotations

import contextlib
import threading
from typing import Any

from ._config import get_config

_state = threading.local()


def _stack() -> list[bool]:
    stack = getattr(_state, "stack", None)
    if stack is None:
        stack = []
        _state.stack = stack
    return stack


def is_grad_enabled() -> bool:
    """Return True if the current thread records gradients."""
    enabled = getattr(_state, "enabled", None)
    if enabled is None:
        enabled = bool(get_config().default_requires_grad)
        _state.enabled = enabled
    return enabled


def _push(mode: bool) -> None:
    _stack().append(is_grad_enabled())
    _state.enabled = bool(mode)


def _pop() -> None:
    _state.enabled = _stack().pop()


class set_grad_enabled(contextlib.ContextDecorator):
    """
    Set gradient recording on or off for the duration of a block.

    Parameters
    ----------
    mode : bool
        True to record gradients, False to suspend recording.
    """

    def __init__(self, mode: bool) -> None:
        self.mode = bool(mode)

    def __enter__(self) -> "set_grad_enabled":
        _push(self.mode)
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        _pop()


class no_grad(set_grad_enabled):
    """Disables gradient recording within a function or block."""

    def __init__(self) -> None:
        super().__init__(False)


class enable_grad(set_grad_enabled):
    """Re-enables gradient recording, e.g. inside an outer `no_grad()`."""

    def __init__(self) -> None:
        super().__init__(True)
