"""
QP Formulator
=============

Builds the quadratic program for a minimum-variance portfolio at a target
expected return:

    minimize:    (1/2) * w^T * D * w - d^T * w
    subject to:  sum(w) = 1               (row 0, equality)
                 mu^T * w >= target       (row 1)
                 w_i >= 0                 (rows 2 .. N+1)

D = 2 * Sigma so that the optimal objective is the portfolio variance
w^T * Sigma * w, and d = 0 (pure risk minimization).

The constraint matrix holds one row per constraint. Equality rows come first
and the solver is told how many of them there are (meq). Only the return
row's right-hand side depends on the target, so D and the constraint matrix
are built once and shared by every formulated program.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from minvar_frontier.core.statistics import AssetStatistics

BUDGET_ROW = 0
RETURN_ROW = 1


@dataclass(frozen=True, eq=False)
class QuadraticProgram:
    """
    A convex QP in the form accepted by solve_qp.

    Attributes:
        D: Objective matrix (n x n)
        d: Linear objective vector (n)
        A: Constraint matrix, one row per constraint (m x n)
        b: Right-hand sides (m); rows satisfy A[i] @ x >= b[i]
        meq: Number of leading rows that are equalities
        target_return: Target the program was formulated for, if any
    """

    D: np.ndarray
    d: np.ndarray
    A: np.ndarray
    b: np.ndarray
    meq: int
    target_return: Optional[float] = None

    @property
    def n_vars(self) -> int:
        return self.D.shape[0]

    @property
    def n_constraints(self) -> int:
        return self.A.shape[0]


class QPFormulator:
    """
    Builds minimum-variance QPs for one set of asset statistics.

    Example:
        >>> stats = AssetStatistics.from_moments([0.1, 0.2], [[0.04, 0.0], [0.0, 0.09]])
        >>> qp = QPFormulator(stats).formulate(0.15)
        >>> qp.A.shape
        (4, 2)
    """

    def __init__(self, stats: AssetStatistics):
        self.stats = stats
        n_assets = stats.n_assets

        cov = np.array(stats.cov_matrix, dtype=float)
        D = cov + cov.T
        D.flags.writeable = False
        self.D = D

        d = np.zeros(n_assets)
        d.flags.writeable = False
        self.d = d

        A = np.vstack([
            np.ones(n_assets),
            np.array(stats.expected_returns, dtype=float),
            np.eye(n_assets)
        ])
        A.flags.writeable = False
        self.A = A

    @property
    def n_assets(self) -> int:
        return self.stats.n_assets

    def rhs(self, target_return: float) -> np.ndarray:
        """Fresh right-hand-side vector [1, target, 0, ..., 0]."""
        b = np.zeros(self.A.shape[0])
        b[BUDGET_ROW] = 1.0
        b[RETURN_ROW] = target_return
        return b

    def formulate(self, target_return: float, exact: bool = False) -> QuadraticProgram:
        """
        Build the QP for one target return.

        Args:
            target_return: Required expected portfolio return
            exact: If True, the return row is an equality (meq = 2) so the
                portfolio return equals the target instead of exceeding it

        Returns:
            QuadraticProgram sharing D, d and A with every other formulation
        """
        target_return = float(target_return)
        b = self.rhs(target_return)
        b.flags.writeable = False

        return QuadraticProgram(
            D=self.D,
            d=self.d,
            A=self.A,
            b=b,
            meq=2 if exact else 1,
            target_return=target_return
        )
