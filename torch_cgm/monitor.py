"""
Convergence monitors for iterative solvers

A monitor is constructed from the right-hand side ``b`` and decides when an
iteration stops:

    converged  : ||r|| <= absolute_tolerance + relative_tolerance * ||b||
    finished   : converged or iteration_count >= iteration_limit

The solver calls :meth:`Monitor.finished` with the current residual before
every iteration and :meth:`Monitor.increment` after it.
"""

from torch import Tensor

from .blas import nrm2
from .check import check_vector

# Defaults match the classic Krylov solver monitor
DEFAULT_ITERATION_LIMIT = 500
DEFAULT_RELATIVE_TOLERANCE = 1e-5
DEFAULT_ABSOLUTE_TOLERANCE = 0.0


class Monitor:
    """
    Default monitor: stops on the relative residual or an iteration limit.

    Parameters
    ----------
    b : Tensor
        [n] right-hand side, sets the relative residual baseline
    iteration_limit : int, optional
        maximum number of iterations, by default 500
    relative_tolerance : float, optional
        by default 1e-5
    absolute_tolerance : float, optional
        by default 0
    """

    def __init__(self, b: Tensor,
                 iteration_limit: int = DEFAULT_ITERATION_LIMIT,
                 relative_tolerance: float = DEFAULT_RELATIVE_TOLERANCE,
                 absolute_tolerance: float = DEFAULT_ABSOLUTE_TOLERANCE):
        check_vector("b", b)
        if iteration_limit < 0:
            raise ValueError(f"iteration_limit must be non-negative, got {iteration_limit}")
        if relative_tolerance < 0:
            raise ValueError(f"relative_tolerance must be non-negative, got {relative_tolerance}")
        if absolute_tolerance < 0:
            raise ValueError(f"absolute_tolerance must be non-negative, got {absolute_tolerance}")
        self.b_norm = nrm2(b).item()
        self.r_norm = float('inf')
        self._iteration_limit = iteration_limit
        self._iteration_count = 0
        self._relative_tolerance = relative_tolerance
        self._absolute_tolerance = absolute_tolerance

    def increment(self) -> 'Monitor':
        self._iteration_count += 1
        return self

    def finished(self, r: Tensor) -> bool:
        self.r_norm = nrm2(r).item()
        return self.converged() or self._iteration_count >= self._iteration_limit

    def converged(self) -> bool:
        return self.r_norm <= self.tolerance()

    def residual_norm(self) -> float:
        return self.r_norm

    def iteration_count(self) -> int:
        return self._iteration_count

    def iteration_limit(self) -> int:
        return self._iteration_limit

    def relative_tolerance(self) -> float:
        return self._relative_tolerance

    def absolute_tolerance(self) -> float:
        return self._absolute_tolerance

    def tolerance(self) -> float:
        return self._absolute_tolerance + self._relative_tolerance * self.b_norm

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(iteration={self._iteration_count}/{self._iteration_limit}, "
                f"residual={self.r_norm:.2e}, tolerance={self.tolerance():.2e})")


class VerboseMonitor(Monitor):
    """
    Monitor that prints the residual norm at every check and a summary
    once the solve is finished.
    """

    def __init__(self, b: Tensor,
                 iteration_limit: int = DEFAULT_ITERATION_LIMIT,
                 relative_tolerance: float = DEFAULT_RELATIVE_TOLERANCE,
                 absolute_tolerance: float = DEFAULT_ABSOLUTE_TOLERANCE):
        super().__init__(b, iteration_limit, relative_tolerance, absolute_tolerance)
        print(f"Solver will continue until residual norm {self.tolerance():.2e} "
              f"or reaching {self._iteration_limit} iterations")
        print("  Iteration Number  | Residual Norm")

    def finished(self, r: Tensor) -> bool:
        done = super().finished(r)
        print(f"       {self._iteration_count:10d}  {self.r_norm:14.6e}")
        if done:
            if self.converged():
                print(f"Successfully converged after {self._iteration_count} iterations.")
            else:
                print(f"Failed to converge after {self._iteration_count} iterations.")
        return done
