"""
Linear operators consumed by the Krylov solvers

The solvers only need ``shape``, ``dtype``, ``device`` and ``matvec``.
:class:`LinearOperator` provides those for COO triplets (converted to CSR
once and cached), dense tensors, ``torch.sparse`` tensors and plain
callables.
"""

import torch
from torch import Tensor
from typing import Tuple, Callable, Optional, Union

from .check import check_coo, check_vector, ShapeException


class LinearOperator:
    """
    Square or rectangular linear operator ``y = A @ x``.

    Build one with :meth:`from_coo`, :meth:`from_dense`, :meth:`from_sparse`
    or directly from a matvec callable.

    Parameters
    ----------
    shape : Tuple[int, int]
        (m, n)
    matvec : Callable[[Tensor], Tensor]
        maps an [n] tensor to an [m] tensor
    dtype : torch.dtype
    device : torch.device
    """

    def __init__(self, shape: Tuple[int, int], matvec: Callable[[Tensor], Tensor],
                 dtype: torch.dtype = torch.float64,
                 device: Union[str, torch.device] = 'cpu'):
        if isinstance(device, str):
            device = torch.device(device)
        if not (len(shape) == 2 and shape[0] > 0 and shape[1] > 0):
            raise ShapeException("shape", shape, "(m,n)")
        self.shape = (int(shape[0]), int(shape[1]))
        self._matvec = matvec
        self.dtype = dtype
        self.device = device

    @property
    def num_rows(self) -> int:
        return self.shape[0]

    @property
    def num_cols(self) -> int:
        return self.shape[1]

    def matvec(self, x: Tensor) -> Tensor:
        """Matrix-vector product y = A @ x"""
        return self._matvec(x)

    def __matmul__(self, x: Tensor) -> Tensor:
        return self.matvec(x)

    def __repr__(self) -> str:
        return f"LinearOperator(shape={self.shape}, dtype={self.dtype}, device={self.device})"

    @classmethod
    def from_coo(cls, val: Tensor, row: Tensor, col: Tensor,
                 shape: Tuple[int, int]) -> 'LinearOperator':
        """
        Operator from COO triplets, duplicates are summed

        The CSR matrix is built once here, avoiding repeated COO->CSR
        conversion inside the iteration.

        Parameters
        ----------
        val : torch.Tensor
            [nnz]
        row : torch.Tensor
            [nnz]
        col : torch.Tensor
            [nnz]
        shape : Tuple[int, int]
            (m, n)
        """
        check_coo(val, row, col, shape)
        indices = torch.stack([row, col], dim=0)
        coo = torch.sparse_coo_tensor(indices, val, shape, device=val.device, dtype=val.dtype)
        csr = coo.coalesce().to_sparse_csr()
        return cls(shape, lambda x: torch.mv(csr, x), dtype=val.dtype, device=val.device)

    @classmethod
    def from_dense(cls, A: Tensor) -> 'LinearOperator':
        if A.ndim != 2:
            raise ShapeException("A", tuple(A.shape), "(m,n)")
        return cls(tuple(A.shape), lambda x: torch.mv(A, x), dtype=A.dtype, device=A.device)

    @classmethod
    def from_sparse(cls, A: Tensor) -> 'LinearOperator':
        """Operator from a ``torch.sparse_coo`` or ``torch.sparse_csr`` tensor"""
        if A.ndim != 2:
            raise ShapeException("A", tuple(A.shape), "(m,n)")
        if A.layout == torch.sparse_coo:
            A = A.coalesce().to_sparse_csr()
        return cls(tuple(A.shape), lambda x: torch.mv(A, x), dtype=A.dtype, device=A.device)


def aslinearoperator(A, shape: Optional[Tuple[int, int]] = None,
                     dtype: Optional[torch.dtype] = None,
                     device: Optional[Union[str, torch.device]] = None) -> LinearOperator:
    """
    Cast ``A`` to a :class:`LinearOperator`

    Accepted inputs:

    - :class:`LinearOperator`, returned as is
    - dense 2D tensor
    - ``torch.sparse_coo`` / ``torch.sparse_csr`` tensor
    - ``(val, row, col, shape)`` COO tuple
    - callable, which then requires ``shape`` (``dtype`` and ``device``
      default to float64 on cpu)
    """
    if isinstance(A, LinearOperator):
        return A
    if isinstance(A, Tensor):
        if A.layout == torch.strided:
            return LinearOperator.from_dense(A)
        return LinearOperator.from_sparse(A)
    if isinstance(A, tuple) and len(A) == 4:
        return LinearOperator.from_coo(*A)
    if callable(A):
        if shape is None:
            raise ValueError("shape is required when A is a callable")
        return LinearOperator(shape, A,
                              dtype=torch.float64 if dtype is None else dtype,
                              device='cpu' if device is None else device)
    raise TypeError(f"Cannot interpret {type(A).__name__} as a linear operator")


def multiply(A: LinearOperator, x: Tensor, y: Tensor) -> Tensor:
    """
    y <- A @ x

    Parameters
    ----------
    A : LinearOperator
        (m, n)
    x : Tensor
        [n]
    y : Tensor
        [m], overwritten
    """
    check_vector("x", x, A.num_cols)
    check_vector("y", y, A.num_rows)
    return y.copy_(A.matvec(x))
