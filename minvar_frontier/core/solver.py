"""
QP Solver
=========

Solves convex quadratic programs of the form

    minimize:    (1/2) * x^T * D * x - d^T * x
    subject to:  A[i] @ x == b[i]   for i < meq
                 A[i] @ x >= b[i]   for i >= meq

using a primal active-set method:

1. Symmetrize D and check it is positive semi-definite. Small negative
   eigenvalues from rounding are clamped to zero, larger ones raise
   NumericalError.
2. Find a feasible starting point with an LP (scipy.optimize.linprog, HiGHS).
   An infeasible LP means the QP is infeasible.
3. Keep a working set of constraints treated as equalities. Each iteration
   minimizes the objective over the null space of the working set, steps as
   far as feasibility allows, and adds the blocking constraint. At a
   stationary point the inequality with the most negative Lagrange
   multiplier is released. All multipliers non-negative = optimal.

Each call is a pure function of its inputs and allocates its own storage.
"""

import logging
from dataclasses import dataclass
from typing import Tuple, List, Optional

import numpy as np
from scipy.linalg import null_space
from scipy.optimize import linprog

from minvar_frontier.core.config import OptimizerConfig, DEFAULT_CONFIG
from minvar_frontier.core.errors import NumericalError, InfeasibleError, UnboundedError
from minvar_frontier.core.formulator import QuadraticProgram

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class QPSolution:
    """
    Result of one QP solve.

    Attributes:
        x: Optimal point
        value: Optimal objective (1/2) x^T D x - d^T x
        multipliers: Lagrange multiplier per constraint row (0 if inactive)
        active: Indices of the constraints in the final working set
        iterations: Number of active-set iterations
    """

    x: np.ndarray
    value: float
    multipliers: np.ndarray
    active: Tuple[int, ...]
    iterations: int


def _check_inputs(D, d, A, b, meq):
    n = D.shape[0]
    if D.ndim != 2 or D.shape != (n, n):
        raise ValueError(f"Objective matrix must be square, got shape {D.shape}")
    if d.shape != (n,):
        raise ValueError(f"Objective vector has shape {d.shape}, expected ({n},)")
    if A.ndim != 2 or A.shape[1] != n:
        raise ValueError(f"Constraint matrix has shape {A.shape}, expected (m, {n})")
    if b.shape != (A.shape[0],):
        raise ValueError(
            f"Right-hand side has shape {b.shape}, expected ({A.shape[0]},)"
        )
    if not 0 <= meq <= A.shape[0]:
        raise ValueError(f"meq must be between 0 and {A.shape[0]}, got {meq}")


def prepare_objective(D: np.ndarray, psd_tol: float = 1e-10) -> np.ndarray:
    """
    Symmetrize the objective matrix and clamp rounding-level negative eigenvalues.

    Args:
        D: Objective matrix
        psd_tol: Eigenvalues below -psd_tol * max(1, max|eigenvalue|) fail

    Returns:
        Symmetric positive semi-definite matrix

    Raises:
        NumericalError: If D is not positive semi-definite within tolerance
    """
    D = np.array(D, dtype=float)
    if not np.all(np.isfinite(D)):
        raise NumericalError("Objective matrix contains NaN or Inf")

    D = (D + D.T) / 2
    eigenvalues, eigenvectors = np.linalg.eigh(D)
    scale = max(1.0, float(np.max(np.abs(eigenvalues))))
    smallest = float(eigenvalues.min())

    if smallest < -psd_tol * scale:
        raise NumericalError(
            f"Objective matrix is not positive semi-definite: smallest "
            f"eigenvalue {smallest:.6e} is below tolerance {-psd_tol * scale:.1e}"
        )

    if smallest < 0:
        logger.warning(
            "Clamping negative eigenvalue %.3e of objective matrix to zero", smallest
        )
        eigenvalues = np.clip(eigenvalues, 0.0, None)
        D = np.dot(eigenvectors * eigenvalues, eigenvectors.T)
        D = (D + D.T) / 2

    return D


def _feasible_start(A, b, meq, config, target_return):
    """Phase 1: any point satisfying all constraints, via an LP with zero cost."""
    n = A.shape[1]
    if A.shape[0] == 0:
        return np.zeros(n)

    A_eq = A[:meq] if meq > 0 else None
    b_eq = b[:meq] if meq > 0 else None
    A_ub = -A[meq:] if A.shape[0] > meq else None
    b_ub = -b[meq:] if A.shape[0] > meq else None

    result = linprog(
        np.zeros(n),
        A_ub=A_ub, b_ub=b_ub,
        A_eq=A_eq, b_eq=b_eq,
        bounds=[(None, None)] * n,
        method='highs',
        options={'primal_feasibility_tolerance': max(config.feasibility_tol, 1e-10)}
    )

    if result.status == 2:
        raise InfeasibleError(
            "No weight vector satisfies the budget, return and non-negativity "
            "constraints together",
            target_return
        )
    if not result.success:
        raise NumericalError(
            f"Could not find a feasible starting point: {result.message}",
            target_return
        )

    return np.array(result.x, dtype=float)


def _subproblem_step(D, g, A_W, r_W, tol):
    """
    Minimize the objective over the null space of the working set.

    Returns (step, ray). ray is not None when the objective decreases
    linearly along a zero-curvature direction of the null space.
    """
    n = D.shape[0]
    if A_W.shape[0] > 0:
        p0 = np.linalg.lstsq(A_W, r_W, rcond=None)[0]
        Z = null_space(A_W)
    else:
        p0 = np.zeros(n)
        Z = np.eye(n)

    if Z.shape[1] == 0:
        return p0, None

    H = np.dot(Z.T, np.dot(D, Z))
    gz = np.dot(Z.T, g + np.dot(D, p0))

    eigenvalues, eigenvectors = np.linalg.eigh((H + H.T) / 2)
    flat = eigenvalues <= tol * max(1.0, float(np.max(np.abs(eigenvalues))))
    components = np.dot(eigenvectors.T, gz)

    # Gradient component along a flat direction: descent with no curvature
    flat_grad = flat & (np.abs(components) > tol * max(1.0, float(np.linalg.norm(gz))))
    if np.any(flat_grad):
        v = np.dot(eigenvectors[:, flat_grad], components[flat_grad])
        return p0, -np.dot(Z, v)

    curved = ~flat
    y = -np.dot(eigenvectors[:, curved], components[curved] / eigenvalues[curved])
    return p0 + np.dot(Z, y), None


def _ratio_test(A, b, x, direction, working, meq, tol):
    """Longest feasible step along direction, and the constraint that blocks it."""
    Ad = np.dot(A, direction)
    slack = np.dot(A, x) - b
    alpha = np.inf
    blocking = None

    in_working = set(working)
    A_W = A[working] if working else np.zeros((0, A.shape[1]))
    rank_W = np.linalg.matrix_rank(A_W) if working else 0
    direction_norm = float(np.linalg.norm(direction))

    for i in range(meq, A.shape[0]):
        if i in in_working:
            continue
        if Ad[i] >= -tol * max(1.0, float(np.linalg.norm(A[i]))) * direction_norm:
            continue
        ratio = max(slack[i], 0.0) / -Ad[i]
        if ratio < alpha:
            # A constraint dependent on the working set cannot block
            if np.linalg.matrix_rank(np.vstack([A_W, A[i]])) == rank_W:
                continue
            alpha = ratio
            blocking = i

    return alpha, blocking


def solve_qp(
    D: np.ndarray,
    d: np.ndarray,
    A: np.ndarray,
    b: np.ndarray,
    meq: int = 0,
    config: Optional[OptimizerConfig] = None,
    target_return: Optional[float] = None
) -> QPSolution:
    """
    Solve a convex QP with the active-set method.

    Args:
        D: Objective matrix (n x n), symmetric positive semi-definite
        d: Linear objective vector (n)
        A: Constraint matrix, one row per constraint (m x n)
        b: Right-hand sides (m)
        meq: Number of leading rows that are equalities
        config: Tolerances (default: DEFAULT_CONFIG)
        target_return: Target the program encodes, attached to errors

    Returns:
        QPSolution with the optimal point and objective value

    Raises:
        NumericalError: D not PSD within tolerance, or no convergence
        InfeasibleError: No point satisfies the constraints
        UnboundedError: Objective unbounded below on the feasible set
    """
    config = config or DEFAULT_CONFIG

    D = np.atleast_2d(np.array(D, dtype=float))
    d = np.array(d, dtype=float).flatten()
    A = np.array(A, dtype=float).reshape(-1, D.shape[0])
    b = np.array(b, dtype=float).flatten()
    _check_inputs(D, d, A, b, meq)

    D = prepare_objective(D, config.psd_tol)
    x = _feasible_start(A, b, meq, config, target_return)

    n, m = D.shape[0], A.shape[0]
    tol = config.optimality_tol
    working: List[int] = list(range(meq))
    multipliers = np.zeros(m)
    max_iter = config.iteration_limit(n, m)

    for iteration in range(1, max_iter + 1):
        g = np.dot(D, x) - d
        A_W = A[working] if working else np.zeros((0, n))
        r_W = b[working] - np.dot(A_W, x) if working else np.zeros(0)

        step, ray = _subproblem_step(D, g, A_W, r_W, tol)

        if ray is not None:
            x = x + step
            alpha, blocking = _ratio_test(A, b, x, ray, working, meq, tol)
            if blocking is None:
                raise UnboundedError(
                    "Objective decreases without bound along a feasible direction",
                    target_return
                )
            logger.debug("Iteration %d: ray step %.3e, adding row %d", iteration, alpha, blocking)
            x = x + alpha * ray
            working.append(blocking)
            continue

        if np.linalg.norm(step, np.inf) <= tol * max(1.0, float(np.linalg.norm(x, np.inf))):
            x = x + step
            multipliers = np.zeros(m)
            if working:
                lam = np.linalg.lstsq(A_W.T, np.dot(D, x) - d, rcond=None)[0]
                multipliers[working] = lam

            inequalities = [i for i in working if i >= meq]
            if not inequalities:
                break
            worst = min(inequalities, key=lambda i: multipliers[i])
            if multipliers[worst] >= -tol:
                break

            logger.debug(
                "Iteration %d: releasing row %d (multiplier %.3e)",
                iteration, worst, multipliers[worst]
            )
            working.remove(worst)
            continue

        alpha, blocking = _ratio_test(A, b, x, step, working, meq, tol)
        if blocking is not None and alpha < 1.0:
            x = x + alpha * step
            working.append(blocking)
            logger.debug("Iteration %d: step %.3e, adding row %d", iteration, alpha, blocking)
        else:
            x = x + step
    else:
        raise NumericalError(
            f"Active-set method did not converge in {max_iter} iterations",
            target_return
        )

    residual = np.dot(A, x) - b
    violation = 0.0
    if meq > 0:
        violation = float(np.max(np.abs(residual[:meq])))
    if m > meq:
        violation = max(violation, float(np.max(-residual[meq:])))
    if violation > 10 * config.feasibility_tol * max(1.0, float(np.max(np.abs(b), initial=0.0))):
        raise NumericalError(
            f"Solution violates the constraints by {violation:.3e}",
            target_return
        )

    multipliers[[i for i in range(m) if i not in working]] = 0.0
    value = float(0.5 * np.dot(x, np.dot(D, x)) - np.dot(d, x))

    return QPSolution(
        x=x,
        value=value,
        multipliers=multipliers,
        active=tuple(sorted(working)),
        iterations=iteration
    )


def solve(qp: QuadraticProgram, config: Optional[OptimizerConfig] = None) -> QPSolution:
    """Solve a formulated QuadraticProgram."""
    return solve_qp(qp.D, qp.d, qp.A, qp.b, qp.meq, config, qp.target_return)
