"""
Tests for linear operators, vector primitives and the stacked layout
"""

import pytest
import torch
from itertools import product
import sys

sys.path.insert(0, "..")
from torch_cgm import LinearOperator, aslinearoperator, multiply, BlockedVector, ShapeException
from torch_cgm import blas


devices = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])


# ============================================================================
# Operators
# ============================================================================

@pytest.mark.parametrize('device', devices)
def test_from_coo_sums_duplicates(device):
    val = torch.tensor([1.0, 2.0, 3.0, 4.0], dtype=torch.float64, device=device)
    row = torch.tensor([0, 0, 1, 1], device=device)
    col = torch.tensor([0, 0, 1, 0], device=device)
    A = LinearOperator.from_coo(val, row, col, (2, 2))
    x = torch.tensor([1.0, 10.0], dtype=torch.float64, device=device)
    y = torch.empty(2, dtype=torch.float64, device=device)

    multiply(A, x, y)

    torch.testing.assert_close(y, torch.tensor([3.0, 34.0], dtype=torch.float64, device=device))
    assert A.num_rows == 2 and A.num_cols == 2
    assert A.dtype == torch.float64


@pytest.mark.parametrize(['kind', 'device'], product(['dense', 'coo', 'csr', 'tuple', 'callable'], devices))
def test_aslinearoperator(kind, device):
    torch.manual_seed(0)
    dense = torch.randn(5, 5, dtype=torch.float64, device=device)
    if kind == 'dense':
        A = aslinearoperator(dense)
    elif kind == 'coo':
        A = aslinearoperator(dense.to_sparse_coo())
    elif kind == 'csr':
        A = aslinearoperator(dense.to_sparse_csr())
    elif kind == 'tuple':
        coo = dense.to_sparse_coo().coalesce()
        A = aslinearoperator((coo.values(), coo.indices()[0], coo.indices()[1], (5, 5)))
    else:
        A = aslinearoperator(lambda v: dense @ v, shape=(5, 5), device=device)

    x = torch.randn(5, dtype=torch.float64, device=device)
    torch.testing.assert_close(A @ x, dense @ x)
    assert A.shape == (5, 5)
    assert aslinearoperator(A) is A


def test_aslinearoperator_errors():
    with pytest.raises(ValueError):
        aslinearoperator(lambda v: v)
    with pytest.raises(TypeError):
        aslinearoperator("not a matrix")
    with pytest.raises(ShapeException):
        aslinearoperator(torch.ones(3, dtype=torch.float64))


def test_multiply_checks_shapes():
    A = aslinearoperator(torch.ones(3, 2, dtype=torch.float64))
    y = torch.full((3,), 7.0, dtype=torch.float64)
    with pytest.raises(ShapeException):
        multiply(A, torch.ones(3, dtype=torch.float64), y)
    with pytest.raises(ShapeException):
        multiply(A, torch.ones(2, dtype=torch.float64), torch.empty(2, dtype=torch.float64))
    assert (y == 7.0).all()


# ============================================================================
# Vector primitives
# ============================================================================

def test_axpy_scal_fill_copy():
    x = torch.tensor([1.0, 2.0], dtype=torch.float64)
    y = torch.tensor([10.0, 20.0], dtype=torch.float64)
    blas.axpy(x, y, 2.0)
    torch.testing.assert_close(y, torch.tensor([12.0, 24.0], dtype=torch.float64))
    blas.axpy(x, y, torch.tensor(-1.0, dtype=torch.float64))
    torch.testing.assert_close(y, torch.tensor([11.0, 22.0], dtype=torch.float64))
    blas.scal(y, 0.5)
    torch.testing.assert_close(y, torch.tensor([5.5, 11.0], dtype=torch.float64))
    blas.copy(x, y)
    torch.testing.assert_close(y, x)
    blas.fill(y, 3.0)
    assert (y == 3.0).all()
    with pytest.raises(ShapeException):
        blas.axpy(x, torch.zeros(3, dtype=torch.float64), 1.0)


def test_dotc_conjugates_first_argument():
    x = torch.tensor([1j, 2.0], dtype=torch.complex128)
    y = torch.tensor([1j, 1.0], dtype=torch.complex128)
    # conj(1j) * 1j + 2 * 1 = 1 + 2
    assert blas.dotc(x, y).item() == 3.0
    assert blas.dotc(x, x).item() == 5.0
    with pytest.raises(ValueError):
        blas.dotc(x, torch.ones(2, dtype=torch.float64))


# ============================================================================
# Stacked layout
# ============================================================================

def test_blocked_vector_indices_and_view():
    data = torch.arange(12, dtype=torch.float64)
    blocked = BlockedVector(data, block_size=4)
    assert blocked.num_blocks == 3
    assert len(blocked) == 12
    for i in range(12):
        s, k = blocked.block(i), blocked.within(i)
        assert blocked.flat_index(s, k) == i
        assert blocked[s][k] == data[i]

    blocked.view()[1].fill_(-1.0)
    assert (data[4:8] == -1.0).all()


def test_blocked_vector_rejects_bad_length():
    with pytest.raises(ShapeException):
        BlockedVector(torch.zeros(10), block_size=4)
    with pytest.raises(ShapeException):
        BlockedVector(torch.zeros(12), block_size=4, num_blocks=2)
    with pytest.raises(ShapeException):
        BlockedVector(torch.zeros(12), block_size=0)


def test_blocked_vector_empty():
    blocked = BlockedVector.empty(3, 2, dtype=torch.float32)
    assert blocked.view().shape == (2, 3)
    assert blocked.data.dtype == torch.float32
