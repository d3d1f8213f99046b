#!/usr/bin/env python
"""
Low level CG-M usage

This example demonstrates:
1. A 1D Laplacian built from COO triplets
2. Solving many shifted systems with a caller owned output buffer
3. Watching convergence with a VerboseMonitor
4. Checking every shifted residual
"""

import torch
from torch_cgm import cg_m, LinearOperator, VerboseMonitor


def laplacian_1d(n: int, dtype=torch.float64):
    """Tridiagonal [-1, 2, -1] matrix in COO format."""
    i = torch.arange(n)
    row = torch.cat([i, i[:-1], i[1:]])
    col = torch.cat([i, i[1:], i[:-1]])
    val = torch.cat([torch.full((n,), 2.0, dtype=dtype),
                     torch.full((n - 1,), -1.0, dtype=dtype),
                     torch.full((n - 1,), -1.0, dtype=dtype)])
    return val, row, col, (n, n)


if __name__ == '__main__':
    n = 200
    val, row, col, shape = laplacian_1d(n)
    A = LinearOperator.from_coo(val, row, col, shape)
    b = torch.ones(n, dtype=torch.float64)

    # one row of X per shift
    sigma = torch.logspace(-3, 1, 8, dtype=torch.float64)
    x = torch.empty(n * len(sigma), dtype=torch.float64)

    monitor = cg_m(A, x, b, sigma, VerboseMonitor(b, iteration_limit=1000, relative_tolerance=1e-10))

    X = x.view(len(sigma), n)
    dense = torch.sparse_coo_tensor(torch.stack([row, col]), val, shape).to_dense()
    for s, x_s in zip(sigma.tolist(), X):
        residual = (dense + s * torch.eye(n, dtype=torch.float64)) @ x_s - b
        print(f"sigma={s:8.3e}  |r|/|b|={(residual.norm() / b.norm()).item():.2e}")
    print(f"{monitor.iteration_count()} iterations for {len(sigma)} shifts")
