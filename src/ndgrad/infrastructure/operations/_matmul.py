"""
Matrix multiplication operation.

`MatMul` multiplies the last two axes of its operands and broadcasts the
leading batch axes. A rank-1 left operand is treated as a row vector and a
rank-1 right operand as a column vector; the corresponding axis is removed
from the result. Both operands are left-padded with size-1 axes to equal
rank before the kernel runs.

The kernel is selected by the runtime configuration (``matmul_backend``).
"""

from __future__ import annotations

from ...domain._errors import ShapeMismatchError
from ...domain._operation import Operation
from ...domain._shape import Shape
from ...domain._tensor import ITensor
from .._config import get_config
from ..ops.matmul_cpu import matmul_forward_cpu


def _padded_shapes(a_shape: Shape, b_shape: Shape) -> tuple[Shape, Shape, bool, bool]:
    if a_shape.rank() == 0 or b_shape.rank() == 0:
        raise ShapeMismatchError(
            "matmul", a_shape.dims, b_shape.dims, detail="operands must have rank >= 1"
        )
    a_vec = a_shape.rank() == 1
    b_vec = b_shape.rank() == 1
    a_dims = (1,) + a_shape.dims if a_vec else a_shape.dims
    b_dims = b_shape.dims + (1,) if b_vec else b_shape.dims
    rank = max(len(a_dims), len(b_dims))
    a_dims = (1,) * (rank - len(a_dims)) + a_dims
    b_dims = (1,) * (rank - len(b_dims)) + b_dims
    return Shape(a_dims), Shape(b_dims), a_vec, b_vec


class MatMul(Operation):
    """
    Batched matrix product ``a @ b``.

    Backward:

        dA = grad @ b^T   (reduced to a's padded shape, then reshaped)
        dB = a^T @ grad   (reduced to b's padded shape, then reshaped)
    """

    def __init__(self, a: ITensor, b: ITensor) -> None:
        super().__init__(a, b)
        a_pad, b_pad, a_vec, b_vec = _padded_shapes(a.shape, b.shape)
        if a_pad[-1] != b_pad[-2]:
            raise ShapeMismatchError(
                "matmul",
                a.shape.dims,
                b.shape.dims,
                detail=f"inner dimensions differ ({a_pad[-1]} != {b_pad[-2]})",
            )
        self.a_vec = a_vec
        self.b_vec = b_vec
        self.save_for_backward("a_pad", a_pad)
        self.save_for_backward("b_pad", b_pad)
        self.save_for_backward("a", a.detach().reshape(a_pad.dims))
        self.save_for_backward("b", b.detach().reshape(b_pad.dims))

    def _forward(self) -> ITensor:
        a, _ = self.inputs
        a_arr = self.saved("a").to_numpy()
        b_arr = self.saved("b").to_numpy()
        cfg = get_config()
        out = matmul_forward_cpu(
            a_arr,
            b_arr,
            backend=cfg.matmul_backend,
            block_size=cfg.matmul_block_size,
            warn_elements=cfg.matmul_warn_elements,
        )
        self.save_for_backward("out_shape", Shape(out.shape))
        if self.b_vec:
            out = out[..., 0]
        if self.a_vec:
            out = out[..., 0, :] if not self.b_vec else out[..., 0]
        return type(a)._from_numpy(out, a.dtype)

    def _backward(self, grad_out: ITensor) -> None:
        a, b = self.inputs
        grad = grad_out.reshape(self.saved("out_shape").dims)
        if a.requires_grad:
            ga = grad.matmul(self.saved("b").transpose(-1, -2))
            a.accumulate_grad(ga.reduce_to_shape(self.saved("a_pad")).reshape(a.shape.dims))
        if b.requires_grad:
            gb = self.saved("a").transpose(-1, -2).matmul(grad)
            b.accumulate_grad(gb.reduce_to_shape(self.saved("b_pad")).reshape(b.shape.dims))
