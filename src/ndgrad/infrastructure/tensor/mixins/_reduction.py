"""
Tensor reduction mixin.

Differentiable: `sum`, `mean`, `var`.
Not differentiable: `max`, `min` (the results are constants).
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..._indexing import normalize_dim
from ...operations import Mean, Sum


class TensorMixinReduction:
    """
    Reductions for the concrete Tensor implementation.

    ``dim=None`` reduces every element. With ``keepdim=True`` reduced axes
    are kept with size 1.
    """

    def sum(self, dim: Optional[int] = None, keepdim: bool = False):
        return Sum(self, dim, keepdim).forward()

    def mean(self, dim: Optional[int] = None, keepdim: bool = False):
        return Mean(self, dim, keepdim).forward()

    def var(self, dim: Optional[int] = None, keepdim: bool = False):
        """
        Population variance, ``mean((x - mean(x)) ** 2)``.

        Built from differentiable operations.
        """
        centered = self.sub(self.mean(dim, keepdim=True))
        return centered.mul(centered).mean(dim, keepdim)

    def _extremum(self, fn, dim: Optional[int], keepdim: bool):
        if self.shape.size() == 0:
            raise ValueError("max/min of an empty tensor is undefined")
        axis = None if dim is None else normalize_dim(dim, self.shape.rank())
        out = fn(self.data.reshape(self.shape.dims), axis=axis, keepdims=keepdim)
        return type(self)._from_numpy(np.asarray(out), self.dtype)

    def max(self, dim: Optional[int] = None, keepdim: bool = False):
        """Largest element (over `dim`, or overall). Not differentiable."""
        return self._extremum(np.max, dim, keepdim)

    def min(self, dim: Optional[int] = None, keepdim: bool = False):
        """Smallest element (over `dim`, or overall). Not differentiable."""
        return self._extremum(np.min, dim, keepdim)
