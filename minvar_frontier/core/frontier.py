"""
Frontier Tracer
===============

Traces the long-only efficient frontier by solving one minimum-variance QP
per target return.

The default scan runs in whole percentage points from ceil(100 * min mu) to
floor(100 * max mu), so every requested target lies inside the feasible
range. The step is configurable.

Each point is an independent solve on its own right-hand-side vector. A point
that fails (for example infeasible or timed out) is recorded as a gap and the
scan continues. A non-PSD covariance matrix fails the whole trace up front.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError, wait
from dataclasses import dataclass
from typing import Tuple, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from minvar_frontier.core.config import OptimizerConfig, DEFAULT_CONFIG
from minvar_frontier.core.errors import InfeasibleError, NumericalError, UnboundedError
from minvar_frontier.core.formulator import QPFormulator
from minvar_frontier.core.portfolio import Portfolio
from minvar_frontier.core.solver import solve, prepare_objective
from minvar_frontier.core.statistics import AssetStatistics

logger = logging.getLogger(__name__)

POINT_ERRORS = (InfeasibleError, NumericalError, UnboundedError)

# Seconds between checks on a pooled point that has not started yet
QUEUE_POLL = 0.01


@dataclass(frozen=True, eq=False)
class FrontierGap:
    """A scan point that could not be solved."""

    target_return: float
    reason: str


@dataclass(frozen=True, eq=False)
class Frontier:
    """
    Ordered minimum-variance frontier.

    Attributes:
        symbols: Security symbols, aligned with each portfolio's weights
        points: Solved portfolios, strictly increasing in target return
        gaps: Targets that failed, with the reason
    """

    symbols: Tuple[str, ...]
    points: Tuple[Portfolio, ...]
    gaps: Tuple[FrontierGap, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    @property
    def targets(self) -> np.ndarray:
        return np.array([p.target_return for p in self.points], dtype=float)

    @property
    def variances(self) -> np.ndarray:
        return np.array([p.variance for p in self.points], dtype=float)

    @property
    def std_devs(self) -> np.ndarray:
        return np.sqrt(np.clip(self.variances, 0.0, None))

    def as_pairs(self) -> List[Tuple[float, float]]:
        """(variance, target return) pairs for plotting."""
        return [(p.variance, p.target_return) for p in self.points]

    def efficient_segment(self) -> "Frontier":
        """Points from the lowest-variance point onward."""
        if not self.points:
            return self
        start = int(np.argmin(self.variances))
        return Frontier(self.symbols, self.points[start:], self.gaps)

    def as_frame(self) -> pd.DataFrame:
        """
        Table with one row per frontier point.

        Columns: target_return, expected_return, variance, std_dev and one
        weight column per symbol.
        """
        columns = ['target_return', 'expected_return', 'variance', 'std_dev'] + list(self.symbols)
        rows = [
            [p.target_return, p.expected_return, p.variance, p.std_dev] + list(p.weights)
            for p in self.points
        ]
        return pd.DataFrame(rows, columns=columns)


def scan_targets(
    expected_returns: Union[Sequence[float], np.ndarray],
    step_pct: float = 1.0
) -> np.ndarray:
    """
    Target returns from ceil(min) to floor(max), in percentage-point steps.

    Args:
        expected_returns: Individual expected returns (fractions)
        step_pct: Step in percentage points (1.0 = one whole percent)

    Returns:
        Strictly increasing array of target returns as fractions; empty if
        no step boundary falls inside the range

    Example:
        >>> targets = scan_targets([0.1191, 0.3902, 1.3688])
        >>> len(targets), targets[0], targets[-1]
        (125, 0.12, 1.36)
    """
    if step_pct <= 0:
        raise ValueError(f"step_pct must be positive, got {step_pct}")

    returns = np.array(expected_returns, dtype=float)
    # Round first so 0.12 * 100 = 12.000000000000002 stays 12
    low = math.ceil(round(float(returns.min()) * 100, 9))
    high = math.floor(round(float(returns.max()) * 100, 9))

    if low > high:
        return np.array([], dtype=float)

    n_steps = int(math.floor((high - low) / step_pct + 1e-9))
    return (low + step_pct * np.arange(n_steps + 1)) / 100


def check_target_range(
    stats: AssetStatistics,
    target_return: float,
    config: Optional[OptimizerConfig] = None
):
    """
    Reject a target outside [min mu, max mu] of the individual expected returns.

    Raises:
        InfeasibleError: If a long-only, fully-invested portfolio cannot
            reach the target
    """
    config = config or DEFAULT_CONFIG
    low, high = stats.return_range()
    tol = config.target_tol

    if target_return < low - tol or target_return > high + tol:
        raise InfeasibleError(
            f"Target return is outside the attainable range "
            f"[{low:.6f}, {high:.6f}] of individual expected returns; "
            f"a long-only, fully-invested portfolio cannot reach it",
            target_return
        )


def solve_point(
    formulator: QPFormulator,
    target_return: float,
    exact: bool = False,
    config: Optional[OptimizerConfig] = None,
    check_range: bool = True
) -> Portfolio:
    """
    Solve the minimum-variance QP for one target return.

    Args:
        formulator: Shared QP structure
        target_return: Target expected return
        exact: Treat the return row as an equality
        config: Tolerances (default: DEFAULT_CONFIG)
        check_range: Reject targets outside [min mu, max mu] before solving.
            Off only for the global minimum-variance solve, whose return
            floor sits below every security.

    Raises:
        InfeasibleError: If no long-only, fully-invested portfolio reaches
            the target
    """
    if check_range:
        check_target_range(formulator.stats, target_return, config)

    qp = formulator.formulate(target_return, exact=exact)
    solution = solve(qp, config)

    weights = np.array(solution.x, dtype=float)
    weights.flags.writeable = False

    return Portfolio(
        symbols=formulator.stats.symbols,
        weights=weights,
        target_return=float(target_return),
        expected_return=float(np.dot(weights, formulator.stats.expected_returns)),
        variance=solution.value
    )


def _solve_or_gap(formulator, target, exact, config):
    try:
        return solve_point(formulator, target, exact, config)
    except POINT_ERRORS as e:
        return FrontierGap(float(target), str(e))


def _timed_solve(formulator, target, exact, config, started, index):
    started[index] = time.monotonic()
    return _solve_or_gap(formulator, target, exact, config)


def _wait_for_point(future, started, index, timeout):
    """
    Wait for one pooled solve, counting the timeout from when the solve starts.

    Raises:
        FutureTimeoutError: If the solve runs longer than timeout seconds
    """
    if timeout is None:
        return future.result()

    while not future.done():
        start = started[index]
        if start is None:
            # Still queued behind other points
            wait([future], timeout=QUEUE_POLL)
            continue
        remaining = start + timeout - time.monotonic()
        if remaining <= 0:
            raise FutureTimeoutError()
        wait([future], timeout=remaining)

    return future.result()


def trace_frontier(
    source: Union[QPFormulator, AssetStatistics],
    targets: Optional[Sequence[float]] = None,
    step_pct: Optional[float] = None,
    exact: bool = False,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
    config: Optional[OptimizerConfig] = None
) -> Frontier:
    """
    Solve one QP per target return and collect the ordered frontier.

    Args:
        source: QPFormulator, or AssetStatistics to build one from
        targets: Explicit target returns (default: scan_targets(mu, step_pct))
        step_pct: Scan step in percentage points (default: config.step_pct)
        exact: Treat each target as an equality on the portfolio return
        max_workers: Solve points on a thread pool of this size (None or 1 =
            sequential)
        timeout: Seconds each point may run on the thread pool, counted
            from when its solve starts; a point that times out is recorded
            as a gap and the trace returns without waiting for it
        config: Tolerances (default: DEFAULT_CONFIG)

    Returns:
        Frontier with points in strictly increasing target order

    Raises:
        NumericalError: If the covariance matrix is not PSD within tolerance
    """
    config = config or DEFAULT_CONFIG
    formulator = source if isinstance(source, QPFormulator) else QPFormulator(source)

    # Dataset-level check: aborts the whole trace
    prepare_objective(formulator.D, config.psd_tol)

    if targets is None:
        targets = scan_targets(
            formulator.stats.expected_returns,
            step_pct if step_pct is not None else config.step_pct
        )
    targets = np.unique(np.array(targets, dtype=float))

    if len(targets) == 0:
        logger.warning("No target returns to scan")

    results = []
    if max_workers is not None and max_workers > 1 and len(targets) > 1:
        started = [None] * len(targets)
        executor = ThreadPoolExecutor(max_workers=max_workers)
        try:
            futures = [
                executor.submit(_timed_solve, formulator, target, exact, config, started, i)
                for i, target in enumerate(targets)
            ]
            for i, (target, future) in enumerate(zip(targets, futures)):
                try:
                    results.append(_wait_for_point(future, started, i, timeout))
                except FutureTimeoutError:
                    results.append(FrontierGap(
                        float(target),
                        f"Solve timed out after {timeout} seconds (target return {target:.6f})"
                    ))
        finally:
            # A timed-out solve keeps running in its thread; do not wait for it
            executor.shutdown(wait=False, cancel_futures=True)
    else:
        results = [_solve_or_gap(formulator, target, exact, config) for target in targets]

    points = sorted(
        (r for r in results if isinstance(r, Portfolio)),
        key=lambda p: p.target_return
    )
    gaps = sorted(
        (r for r in results if isinstance(r, FrontierGap)),
        key=lambda g: g.target_return
    )

    for gap in gaps:
        logger.warning("Skipped frontier point: %s", gap.reason)

    logger.info(
        "Efficient frontier traced with %d points (%d gaps)", len(points), len(gaps)
    )

    return Frontier(formulator.stats.symbols, tuple(points), tuple(gaps))
