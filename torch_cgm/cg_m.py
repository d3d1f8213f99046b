"""
Multi-shift Conjugate Gradient (CG-M)

Solves

.. math::
    (A + \\sigma_k I) x_k = b, \\qquad k = 0, \\dots, N_s - 1

for all shifts at once, for Hermitian positive definite ``A`` and real
shifts with ``A + sigma_k I`` positive definite. A single unshifted CG
recurrence builds the Krylov space, so each iteration costs one
matrix-vector product no matter how many shifts there are. The shifted
iterates are carried along by the scalar recurrences in
:mod:`torch_cgm.kernels` (B. Jegerlehner, arXiv:hep-lat/9612014).

Limitations:

- Convergence is judged on the unshifted residual only. For positive shifts
  the shifted residuals are never larger, but nothing checks them.
- No preconditioning.
- A breakdown of the unshifted recurrence (``p'Ap == 0``) is not
  intercepted: the resulting inf/NaN propagates into ``x``. Pass
  ``check_breakdown=True`` to raise :class:`BreakdownError` instead.

Usage
-----
>>> A = torch.tensor([[4.0, 1.0], [1.0, 3.0]], dtype=torch.float64)
>>> b = torch.tensor([1.0, 2.0], dtype=torch.float64)
>>> result = shifted_solve(A, b, sigma=[0.0, 0.5, 2.0])
>>> result.X.shape
torch.Size([3, 2])
"""

import torch
from torch import Tensor
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple, Union
import warnings

from .blas import axpy, copy, dotc, fill, scal
from .blocked import BlockedVector
from .check import ShapeException, check_coo, check_square, check_stacked, check_vector
from .kernels import (
    broadcast_replicate,
    compute_next_alpha_sigma,
    compute_next_beta_sigma,
    compute_next_zeta,
    update_shifted_solution_and_direction,
)
from .monitor import (
    Monitor,
    VerboseMonitor,
    DEFAULT_ABSOLUTE_TOLERANCE,
    DEFAULT_ITERATION_LIMIT,
    DEFAULT_RELATIVE_TOLERANCE,
)
from .operator import LinearOperator, aslinearoperator, multiply


def _as_shifts(sigma) -> Tensor:
    """Shifts as a tensor, sequences are built in float64"""
    if not isinstance(sigma, Tensor):
        sigma = torch.tensor(sigma, dtype=torch.float64)
    return sigma


def _same_device(a: torch.device, b: torch.device) -> bool:
    # an operator built with device="cuda" carries no index
    return a.type == b.type and (a.index is None or b.index is None or a.index == b.index)


class BreakdownError(RuntimeError):
    """The unshifted CG recurrence produced a non-finite step length."""


class ShiftedSolveResult(NamedTuple):
    """Result of a multi-shift solve."""
    X: Tensor  # (N_s, n) one solution per shift
    num_iters: int
    residual: float  # unshifted residual norm
    converged: bool


@dataclass
class ShiftState:
    """
    Per-shift scalars of CG-M, each [N_s]

    ``z_m1_s``, ``z_0_s`` and ``z_1_s`` are the last three :math:`\\zeta^\\sigma`;
    ``beta_0_s`` and ``alpha_0_s`` the current shifted step length and
    direction coefficient.
    """
    z_m1_s: Tensor
    z_0_s: Tensor
    z_1_s: Tensor
    beta_0_s: Tensor
    alpha_0_s: Tensor

    @classmethod
    def initial(cls, num_shifts: int, dtype: torch.dtype,
                device: torch.device) -> 'ShiftState':
        return cls(
            z_m1_s=torch.ones(num_shifts, dtype=dtype, device=device),
            z_0_s=torch.ones(num_shifts, dtype=dtype, device=device),
            z_1_s=torch.empty(num_shifts, dtype=dtype, device=device),
            beta_0_s=torch.empty(num_shifts, dtype=dtype, device=device),
            alpha_0_s=torch.zeros(num_shifts, dtype=dtype, device=device),
        )

    def rotate(self):
        """zeta_{-1} <- zeta_0, zeta_0 <- zeta_1"""
        copy(self.z_0_s, self.z_m1_s)
        copy(self.z_1_s, self.z_0_s)


@torch.no_grad()
def cg_m(A: Union[LinearOperator, Tensor],
         x: Tensor,
         b: Tensor,
         sigma: Union[Tensor, Sequence[float]],
         monitor: Optional[Monitor] = None,
         check_breakdown: bool = False) -> Monitor:
    """
    Multi-shift CG, writes every shifted solution into ``x``

    Parameters
    ----------
    A : LinearOperator or Tensor
        (n, n) Hermitian positive definite operator, anything accepted by
        :func:`~torch_cgm.operator.aslinearoperator`
    x : Tensor
        [n * N_s] output, overwritten; block ``k`` (``x.view(N_s, n)[k]``)
        receives the solution for ``sigma[k]``
    b : Tensor
        [n] right-hand side
    sigma : Tensor or sequence of float
        [N_s] shifts, cast to the dtype of ``x``
    monitor : Monitor, optional
        decides when to stop, by default ``Monitor(b)``
    check_breakdown : bool, optional
        raise :class:`BreakdownError` when the step length becomes
        non-finite, by default False

    Returns
    -------
    Monitor
        the monitor, holding iteration count and final residual
    """
    A = aslinearoperator(A)
    sigma = _as_shifts(sigma)

    # sanity checking
    check_square("A", A.shape)
    N = A.num_rows
    check_vector("b", b, N)
    check_vector("sigma", sigma)
    N_s = sigma.shape[0]
    if N_s == 0:
        raise ShapeException("sigma", tuple(sigma.shape), "[N_s] with N_s > 0")
    check_stacked("x", x, N, N_s)
    if x.dtype != b.dtype:
        raise ValueError(f"x and b must have same dtype, got {x.dtype} and {b.dtype}")
    if A.dtype != x.dtype:
        raise ValueError(f"A and x must have same dtype, got {A.dtype} and {x.dtype}")
    if x.device != b.device or not _same_device(A.device, x.device):
        raise ValueError(f"A, x and b must be on the same device, got {A.device}, {x.device} and {b.device}")

    if monitor is None:
        monitor = Monitor(b)

    dtype = x.dtype
    device = x.device
    sigma = sigma.to(dtype=dtype, device=device)

    # per-shift search directions
    p_0_s = BlockedVector.empty(N, N_s, dtype=dtype, device=device).data
    # residual and unshifted iterates
    r_0 = torch.empty(N, dtype=dtype, device=device)
    p_0 = torch.empty(N, dtype=dtype, device=device)
    xx_0 = torch.zeros(N, dtype=dtype, device=device)
    Ap = torch.empty(N, dtype=dtype, device=device)

    state = ShiftState.initial(N_s, dtype, device)

    # unshifted coefficients, kept as 0-d tensors to avoid device sync
    beta_0 = torch.ones((), dtype=dtype, device=device)
    alpha_0 = torch.zeros((), dtype=dtype, device=device)

    copy(b, r_0)
    rsq_1 = dotc(r_0, r_0)

    fill(x, 0)

    broadcast_replicate(b, p_0_s)
    copy(b, p_0)

    while not monitor.finished(r_0):
        # recycle iterates
        rsq_0 = rsq_1
        beta_m1 = beta_0

        multiply(A, p_0, Ap)
        pAp = dotc(p_0, Ap)

        beta_0 = -rsq_0 / pAp
        if check_breakdown and not torch.isfinite(beta_0):
            raise BreakdownError(
                f"CG-M breakdown at iteration {monitor.iteration_count()}: "
                f"p'Ap = {pAp.item():.2e}")

        axpy(Ap, r_0, beta_0)

        compute_next_zeta(state.z_0_s, state.z_m1_s, sigma, beta_m1, beta_0, alpha_0,
                          out=state.z_1_s)
        compute_next_beta_sigma(state.z_1_s, state.z_0_s, beta_0, out=state.beta_0_s)

        rsq_1 = dotc(r_0, r_0)
        alpha_0 = rsq_1 / rsq_0
        alpha_0_inv = rsq_0 / rsq_1

        axpy(p_0, xx_0, -beta_0)
        # p <- r + alpha_0 * p, kept as two steps
        axpy(r_0, p_0, alpha_0_inv)
        scal(p_0, alpha_0)

        compute_next_alpha_sigma(state.z_0_s, state.z_1_s, state.beta_0_s, beta_0, alpha_0,
                                 out=state.alpha_0_s)

        update_shifted_solution_and_direction(state.alpha_0_s, state.z_1_s, state.beta_0_s,
                                              r_0, x, p_0_s)

        state.rotate()
        monitor.increment()

    return monitor


def shifted_solve(A,
                  b: Tensor,
                  sigma: Union[Tensor, Sequence[float]],
                  atol: float = DEFAULT_ABSOLUTE_TOLERANCE,
                  rtol: float = DEFAULT_RELATIVE_TOLERANCE,
                  maxiter: int = DEFAULT_ITERATION_LIMIT,
                  verbose: bool = False,
                  check_breakdown: bool = False,
                  shape: Optional[Tuple[int, int]] = None) -> ShiftedSolveResult:
    """
    Solve :math:`(A + \\sigma_k I) x_k = b` for every shift

    Parameters
    ----------
    A : LinearOperator, Tensor or (val, row, col, shape)
        (n, n) Hermitian positive definite operator
    b : Tensor
        [n]
    sigma : Tensor or sequence of float
        [N_s] shifts
    atol : float, optional
        absolute tolerance on the unshifted residual, by default 0
    rtol : float, optional
        tolerance relative to ``||b||``, by default 1e-5
    maxiter : int, optional
        by default 500
    verbose : bool, optional
        print the residual every iteration, by default False
    check_breakdown : bool, optional
        by default False
    shape : Tuple[int, int], optional
        (n, n), required when ``A`` is a callable, which is then taken to
        share the dtype and device of ``b``

    Returns
    -------
    ShiftedSolveResult
        ``X`` is (N_s, n)
    """
    A = aslinearoperator(A, shape=shape, dtype=b.dtype, device=b.device)
    sigma = _as_shifts(sigma).to(device=b.device).reshape(-1)
    if b.dtype not in (torch.float64, torch.complex128):
        warnings.warn("You'd better use float64 to maintain good precision")

    n, n_s = A.num_rows, sigma.shape[0]
    x = torch.empty(n * n_s, dtype=b.dtype, device=b.device)
    monitor_cls = VerboseMonitor if verbose else Monitor
    monitor = monitor_cls(b, iteration_limit=maxiter,
                          relative_tolerance=rtol, absolute_tolerance=atol)

    cg_m(A, x, b, sigma, monitor, check_breakdown=check_breakdown)

    residual = monitor.residual_norm()
    if not monitor.converged():
        warnings.warn(f"CG-M did not converge in {monitor.iteration_count()} iterations "
                      f"(residual={residual:.2e})")
    return ShiftedSolveResult(x.view(n_s, n), monitor.iteration_count(), residual,
                              monitor.converged())


def spsolve_shifted(val: Tensor,
                    row: Tensor,
                    col: Tensor,
                    shape: Tuple[int, int],
                    b: Tensor,
                    sigma: Union[Tensor, Sequence[float]],
                    atol: float = DEFAULT_ABSOLUTE_TOLERANCE,
                    rtol: float = DEFAULT_RELATIVE_TOLERANCE,
                    maxiter: int = DEFAULT_ITERATION_LIMIT) -> Tensor:
    """Solve the shifted Sparse Linear Equations represented in COO format

    .. math::
        (A + \\sigma_k I) x_k = b

    Parameters
    ----------
    val : torch.Tensor
        [nnz]
    row : torch.Tensor
        [nnz]
    col : torch.Tensor
        [nnz]
    shape : Tuple[int, int]
        (n, n)
    b : torch.Tensor
        [n]
    sigma : torch.Tensor
        [N_s]
    atol : float, optional
        , by default 0
    rtol : float, optional
        , by default 1e-5
    maxiter : int, optional
        , by default 500

    Returns
    -------
    torch.Tensor
        [N_s, n]
    """
    check_coo(val, row, col, shape)
    check_square("shape", shape)
    check_vector("b", b, shape[0])
    if val.dtype != b.dtype:
        raise ValueError(f"val and b must have same dtype, got {val.dtype} and {b.dtype}")

    A = LinearOperator.from_coo(val, row, col, shape)
    return shifted_solve(A, b, sigma, atol=atol, rtol=rtol, maxiter=maxiter).X
