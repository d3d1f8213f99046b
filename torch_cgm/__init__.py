"""
torch-cgm: Multi-shift Conjugate Gradient for PyTorch

Solves families of shifted linear systems

.. math::
    (A + \\sigma_k I) x_k = b

for many shifts at the cost of a single CG solve: one matrix-vector product
per iteration serves every shift. Works on CPU and CUDA tensors, real and
complex dtypes.

Modules
-------
- ``kernels``: per-shift recurrences (zeta, beta, alpha) and stacked vector updates
- ``cg_m``: the CG-M driver and convenience entry points
- ``monitor``: convergence monitors
- ``operator``: linear operators (dense, sparse, COO, callable)
- ``blas``: vector primitives
- ``blocked``: stacked vector layout

Usage
-----
>>> import torch
>>> from torch_cgm import shifted_solve, spsolve_shifted
>>>
>>> # Method 1: dense or sparse tensor
>>> A = torch.tensor([[4.0, -1.0, 0.0],
...                   [-1.0, 4.0, -1.0],
...                   [0.0, -1.0, 4.0]], dtype=torch.float64)
>>> b = torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
>>> result = shifted_solve(A, b, sigma=[0.0, 0.1, 1.0])
>>> result.X  # (3, 3), one row per shift
>>>
>>> # Method 2: COO triplets
>>> val = torch.tensor([4.0, -1.0, -1.0, 4.0, -1.0, -1.0, 4.0], dtype=torch.float64)
>>> row = torch.tensor([0, 0, 1, 1, 1, 2, 2])
>>> col = torch.tensor([0, 1, 0, 1, 2, 1, 2])
>>> X = spsolve_shifted(val, row, col, (3, 3), b, sigma=[0.0, 1.0])
>>>
>>> # Method 3: low level, caller owned output and monitor
>>> from torch_cgm import cg_m, VerboseMonitor
>>> sigma = torch.tensor([0.0, 1.0], dtype=torch.float64)
>>> x = torch.empty(3 * 2, dtype=torch.float64)
>>> monitor = cg_m(A, x, b, sigma, VerboseMonitor(b, iteration_limit=100))
"""

from .cg_m import (
    cg_m,
    shifted_solve,
    spsolve_shifted,
    ShiftState,
    ShiftedSolveResult,
    BreakdownError,
)

from .kernels import (
    compute_next_zeta,
    compute_next_beta_sigma,
    compute_next_alpha_sigma,
    update_shifted_solution_and_direction,
    broadcast_replicate,
)

from .monitor import (
    Monitor,
    VerboseMonitor,
    DEFAULT_ITERATION_LIMIT,
    DEFAULT_RELATIVE_TOLERANCE,
    DEFAULT_ABSOLUTE_TOLERANCE,
)

from .operator import (
    LinearOperator,
    aslinearoperator,
    multiply,
)

from .blocked import BlockedVector

from .check import ShapeException

__version__ = "0.1.0"
__author__ = "walkerchi"

__all__ = [
    # Solve
    "cg_m",
    "shifted_solve",
    "spsolve_shifted",
    "ShiftState",
    "ShiftedSolveResult",
    "BreakdownError",
    # Shift transforms
    "compute_next_zeta",
    "compute_next_beta_sigma",
    "compute_next_alpha_sigma",
    "update_shifted_solution_and_direction",
    "broadcast_replicate",
    # Monitors
    "Monitor",
    "VerboseMonitor",
    "DEFAULT_ITERATION_LIMIT",
    "DEFAULT_RELATIVE_TOLERANCE",
    "DEFAULT_ABSOLUTE_TOLERANCE",
    # Operators
    "LinearOperator",
    "aslinearoperator",
    "multiply",
    # Layout
    "BlockedVector",
    # Errors
    "ShapeException",
    # Version
    "__version__",
]
