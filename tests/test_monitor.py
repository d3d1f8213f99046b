"""
Tests for convergence monitors
"""

import pytest
import torch
import sys

sys.path.insert(0, "..")
from torch_cgm import Monitor, VerboseMonitor, ShapeException


def test_default_tolerance():
    b = torch.tensor([3.0, 4.0], dtype=torch.float64)
    monitor = Monitor(b)
    assert monitor.iteration_limit() == 500
    assert monitor.relative_tolerance() == 1e-5
    assert monitor.absolute_tolerance() == 0.0
    assert monitor.tolerance() == pytest.approx(5e-5)


def test_absolute_and_relative_tolerance():
    b = torch.tensor([3.0, 4.0], dtype=torch.float64)
    monitor = Monitor(b, relative_tolerance=0.1, absolute_tolerance=0.5)
    assert monitor.tolerance() == pytest.approx(1.0)

    assert not monitor.finished(torch.tensor([1.0, 1.0], dtype=torch.float64))
    assert monitor.residual_norm() == pytest.approx(2 ** 0.5)
    assert not monitor.converged()

    assert monitor.finished(torch.tensor([0.3, 0.4], dtype=torch.float64))
    assert monitor.converged()


def test_iteration_limit():
    b = torch.ones(4, dtype=torch.float64)
    r = torch.ones(4, dtype=torch.float64)
    monitor = Monitor(b, iteration_limit=3)
    for _ in range(3):
        assert not monitor.finished(r)
        monitor.increment()
    assert monitor.iteration_count() == 3
    assert monitor.finished(r)
    assert not monitor.converged()


def test_zero_iteration_limit():
    b = torch.ones(2, dtype=torch.float64)
    assert Monitor(b, iteration_limit=0).finished(b)


def test_complex_residual():
    b = torch.tensor([3j, 4.0], dtype=torch.complex128)
    monitor = Monitor(b)
    assert monitor.tolerance() == pytest.approx(5e-5)
    monitor.finished(b)
    assert monitor.residual_norm() == pytest.approx(5.0)


@pytest.mark.parametrize('kwargs', [
    {'iteration_limit': -1},
    {'relative_tolerance': -1e-3},
    {'absolute_tolerance': -1.0},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        Monitor(torch.ones(2, dtype=torch.float64), **kwargs)


def test_rhs_must_be_vector():
    with pytest.raises(ShapeException):
        Monitor(torch.ones(2, 2, dtype=torch.float64))


def test_verbose_monitor_reports_failure(capsys):
    b = torch.ones(2, dtype=torch.float64)
    monitor = VerboseMonitor(b, iteration_limit=1)
    monitor.finished(b)
    monitor.increment()
    assert monitor.finished(b)
    out = capsys.readouterr().out
    assert "Solver will continue until residual norm" in out
    assert "Failed to converge after 1 iterations." in out
