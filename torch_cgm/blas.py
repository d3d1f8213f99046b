"""
BLAS-like vector primitives used by the Krylov solvers

All routines work in place on 1D tensors of any dtype and device.
Scalars may be python numbers or 0-d tensors; 0-d tensors stay on the
device so no host synchronisation happens here.
"""

import torch
from torch import Tensor
from typing import Union

from .check import check_vector

Scalar = Union[float, complex, Tensor]


def _check_pair(x: Tensor, y: Tensor):
    check_vector("x", x)
    check_vector("y", y, x.shape[0])


def copy(src: Tensor, dst: Tensor) -> Tensor:
    """dst <- src"""
    _check_pair(src, dst)
    return dst.copy_(src)


def fill(x: Tensor, value: Scalar) -> Tensor:
    """x <- value"""
    return x.fill_(value)


def scal(x: Tensor, alpha: Scalar) -> Tensor:
    """x <- alpha * x"""
    return x.mul_(alpha)


def axpy(x: Tensor, y: Tensor, alpha: Scalar) -> Tensor:
    """y <- y + alpha * x"""
    _check_pair(x, y)
    if isinstance(alpha, Tensor):
        return y.add_(alpha * x)
    return y.add_(x, alpha=alpha)


def dotc(x: Tensor, y: Tensor) -> Tensor:
    """
    Conjugated inner product ``sum(conj(x) * y)``

    For real dtypes this is the ordinary dot product.

    Returns
    -------
    Tensor
        0-d tensor on the device of ``x``
    """
    _check_pair(x, y)
    if x.dtype != y.dtype:
        raise ValueError(f"x and y must have same dtype, got {x.dtype} and {y.dtype}")
    return torch.vdot(x, y)


def nrm2(x: Tensor) -> Tensor:
    """Euclidean norm, always real."""
    check_vector("x", x)
    return torch.linalg.vector_norm(x)
