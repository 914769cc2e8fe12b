"""
Optimizer Configuration
=======================

Stores the numerical tolerances and scan defaults shared by the statistics
engine, the QP solver and the frontier tracer.
"""

from typing import Optional


class OptimizerConfig:
    """
    Stores all configurable assumptions for an optimization run.

    Attributes:
        psd_tol: Relative tolerance for negative eigenvalues of the objective
            matrix. Eigenvalues in [-psd_tol * scale, 0) are clamped to zero,
            anything smaller raises NumericalError.
        feasibility_tol: Allowed constraint violation for a solved point
        optimality_tol: Lagrange multipliers above -optimality_tol count as
            non-negative; steps shorter than this count as zero
        target_tol: Slack allowed when checking a target against the
            [min, max] expected return range
        max_iter: Active-set iteration cap (None = 10 * (n + m) + 50)
        step_pct: Frontier scan step in percentage points
        ddof: Delta degrees of freedom for std dev and covariance (1 = sample)
    """

    def __init__(
        self,
        psd_tol: float = 1e-10,
        feasibility_tol: float = 1e-9,
        optimality_tol: float = 1e-10,
        target_tol: float = 1e-12,
        max_iter: Optional[int] = None,
        step_pct: float = 1.0,
        ddof: int = 1
    ):
        self.psd_tol = psd_tol
        self.feasibility_tol = feasibility_tol
        self.optimality_tol = optimality_tol
        self.target_tol = target_tol
        self.max_iter = max_iter
        self.step_pct = step_pct
        self.ddof = ddof

        self._validate()

    def _validate(self):
        """Validate that settings are usable."""
        for name in ('psd_tol', 'feasibility_tol', 'optimality_tol', 'step_pct'):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        if self.target_tol < 0:
            raise ValueError(f"target_tol must be non-negative, got {self.target_tol}")

        if self.max_iter is not None and self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")

        if self.ddof not in (0, 1):
            raise ValueError(f"ddof must be 0 or 1, got {self.ddof}")

    def iteration_limit(self, n_vars: int, n_constraints: int) -> int:
        """Active-set iteration cap for a problem of the given size."""
        if self.max_iter is not None:
            return self.max_iter
        return 10 * (n_vars + n_constraints) + 50

    def __repr__(self) -> str:
        return (
            f"OptimizerConfig(psd_tol={self.psd_tol}, "
            f"feasibility_tol={self.feasibility_tol}, "
            f"optimality_tol={self.optimality_tol}, "
            f"target_tol={self.target_tol}, max_iter={self.max_iter}, "
            f"step_pct={self.step_pct}, ddof={self.ddof})"
        )


DEFAULT_CONFIG = OptimizerConfig()
