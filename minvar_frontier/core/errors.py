"""
Error Types for Portfolio Optimization
======================================

All failures raised by the optimization core derive from PortfolioError:

- DataError: the return series cannot be used (empty, too short, misaligned)
- NumericalError: the covariance/objective matrix is not positive
  semi-definite within tolerance, or the solver failed to converge
- InfeasibleError: no weight vector satisfies the constraints for a target
- UnboundedError: the objective is unbounded below on the feasible set

DataError and NumericalError describe the dataset and abort a whole run.
InfeasibleError is local to one target return.
"""

from typing import Optional


class PortfolioError(Exception):
    """Base class for all optimization errors."""

    def __init__(self, message: str, target_return: Optional[float] = None):
        self.target_return = target_return
        if target_return is not None:
            message = f"{message} (target return {target_return:.6f})"
        super().__init__(message)


class DataError(PortfolioError):
    """Malformed or insufficient return series."""


class NumericalError(PortfolioError):
    """Objective matrix not PSD within tolerance, or solver did not converge."""


class InfeasibleError(PortfolioError):
    """No weight vector satisfies the constraint set."""


class UnboundedError(PortfolioError):
    """Quadratic objective is unbounded below on the feasible set."""
