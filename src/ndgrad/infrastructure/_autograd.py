"""
Reverse-mode autograd engine.

The graph is the set of tensors reachable from a root through `parents`.
`topological_order` lists them in DFS post-order (every parent before its
children); the backward pass walks that list in reverse and lets each
node's producing `Operation` push its gradient into its parents via
`accumulate_grad`.

Nodes are tracked by `id()`, so two distinct tensors holding equal values
are always distinct nodes.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..domain._errors import InvalidAutogradStateError, ShapeMismatchError
from ..domain._tensor import ITensor
from ._grad_mode import no_grad

logger = logging.getLogger(__name__)


def topological_order(root: ITensor) -> list[ITensor]:
    """
    Return every tensor reachable from `root` in DFS post-order.

    The traversal is iterative, so deep graphs do not hit the interpreter's
    recursion limit.

    Parameters
    ----------
    root : ITensor
        Starting tensor (usually the loss).

    Returns
    -------
    list[ITensor]
        Reachable tensors, each listed after all of its parents. `root` is
        last.
    """
    order: list[ITensor] = []
    visited: set[int] = set()
    stack: list[tuple[ITensor, bool]] = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))
        stack.append((node, True))
        for parent in reversed(tuple(node.parents)):
            if id(parent) not in visited:
                stack.append((parent, False))

    return order


def run_backward(root, grad: Optional[ITensor] = None) -> None:
    """
    Backpropagate from `root` through its recorded graph.

    Parameters
    ----------
    root : Tensor
        Tensor to differentiate. Must have ``requires_grad=True``.
    grad : Tensor, optional
        Explicit seed gradient with `root`'s shape. If omitted and `root`
        has no gradient yet, the seed is a tensor of ones.

    Raises
    ------
    InvalidAutogradStateError
        If `root` does not require gradients.
    ShapeMismatchError
        If an explicit seed does not match `root`'s shape.

    Notes
    -----
    All backward rules run inside `no_grad()`, so any leaf they allocate
    defaults to ``requires_grad=False``. Local gradients are built from
    detached snapshots, and `accumulate_grad` stores a detached copy.
    """
    if not root.requires_grad:
        raise InvalidAutogradStateError(
            "Cannot backpropagate from a tensor that does not require grad."
        )

    order = topological_order(root)
    logger.debug("backward: %d nodes reachable from %r", len(order), root)

    with no_grad():
        if grad is not None:
            if grad.shape != root.shape:
                raise ShapeMismatchError(
                    "backward", grad.shape.dims, root.shape.dims, detail="seed gradient"
                )
            root.accumulate_grad(grad)
        elif root.grad is None:
            seed = type(root)._from_numpy(
                np.ones(root.shape.dims, dtype=root.dtype.numpy), root.dtype
            )
            root.accumulate_grad(seed)

        for node in reversed(order):
            if node.operation is not None and node.grad is not None:
                node.operation.backward(node.grad)


def clear_graph(root: ITensor) -> int:
    """
    Clear `grad`, `operation` and `parents` on every tensor reachable from
    `root`.

    Returns
    -------
    int
        Number of tensors cleared.
    """
    order = topological_order(root)
    for node in order:
        node._clear_history()
    logger.debug("zero_grad: cleared %d nodes", len(order))
    return len(order)
