"""
Portfolio Optimizer - Long-Only Minimum-Variance Portfolios
============================================================

This module ties the statistics engine, QP formulator, QP solver and
frontier tracer together:
- Minimum-variance portfolio for a target expected return
- Global minimum-variance (long-only) portfolio
- Efficient frontier over the feasible return range
- Human-readable summary report

Theory Background:
------------------
A long-only, fully-invested portfolio's expected return is a convex
combination of the individual expected returns, so only targets in
[min mu_i, max mu_i] can be reached. For each such target the optimizer
solves

    minimize:   w^T * Sigma * w
    subject to: sum(w) = 1,  mu^T * w >= target,  w >= 0

as a convex QP. Sweeping the target traces the efficient frontier.
"""

import logging
from dataclasses import replace
from typing import Tuple, List, Optional, Dict, Sequence, Union

import numpy as np
import pandas as pd

from minvar_frontier.core.config import OptimizerConfig, DEFAULT_CONFIG
from minvar_frontier.core.formulator import QPFormulator
from minvar_frontier.core.frontier import Frontier, solve_point, trace_frontier
from minvar_frontier.core.portfolio import Portfolio
from minvar_frontier.core.statistics import AssetStatistics, ReturnTable, compute_statistics

logger = logging.getLogger(__name__)


class PortfolioOptimizer:
    """
    Minimum-variance portfolio optimization over a fixed set of securities.

    Attributes:
        stats (AssetStatistics): Expected returns and covariance
        config (OptimizerConfig): Numerical tolerances and scan defaults
        formulator (QPFormulator): Shared QP structure for every target

    Example:
        >>> means = [0.01, 0.015, 0.02, 0.025]
        >>> cov = [[0.04, 0.01, 0.02, 0.015],
        ...        [0.01, 0.05, 0.02, 0.01],
        ...        [0.02, 0.02, 0.06, 0.02],
        ...        [0.015, 0.01, 0.02, 0.05]]
        >>> optimizer = PortfolioOptimizer.from_moments(means, cov)
        >>> portfolio = optimizer.optimize_for_target_return(0.02)
    """

    def __init__(self, stats: AssetStatistics, config: Optional[OptimizerConfig] = None):
        """
        Initialize the optimizer.

        Args:
            stats: Asset statistics from compute_statistics or from_moments
            config: Tolerances (default: DEFAULT_CONFIG)
        """
        self.stats = stats
        self.config = config or DEFAULT_CONFIG
        self.formulator = QPFormulator(stats)

    @classmethod
    def from_returns(
        cls,
        table: ReturnTable,
        config: Optional[OptimizerConfig] = None
    ) -> "PortfolioOptimizer":
        """Build an optimizer straight from a return-series table."""
        config = config or DEFAULT_CONFIG
        return cls(compute_statistics(table, ddof=config.ddof), config)

    @classmethod
    def from_moments(
        cls,
        expected_returns: Union[Sequence[float], np.ndarray],
        cov_matrix: Union[Sequence[Sequence[float]], np.ndarray],
        symbols: Optional[Sequence[str]] = None,
        config: Optional[OptimizerConfig] = None
    ) -> "PortfolioOptimizer":
        """Build an optimizer from pre-computed expected returns and covariance."""
        return cls(AssetStatistics.from_moments(expected_returns, cov_matrix, symbols), config)

    @property
    def symbols(self) -> Tuple[str, ...]:
        return self.stats.symbols

    @property
    def n_assets(self) -> int:
        return self.stats.n_assets

    @property
    def expected_returns(self) -> np.ndarray:
        return self.stats.expected_returns

    @property
    def cov_matrix(self) -> np.ndarray:
        return self.stats.cov_matrix

    def portfolio_return(self, weights: np.ndarray) -> float:
        """
        Calculate expected portfolio return.

        Formula: mu_p = w^T * mu = sum(w_i * mu_i)
        """
        return float(np.dot(weights, self.expected_returns))

    def portfolio_variance(self, weights: np.ndarray) -> float:
        """
        Calculate portfolio variance using the quadratic form.

        Formula: sigma_p^2 = w^T * Sigma * w
        """
        return float(np.dot(weights, np.dot(self.cov_matrix, weights)))

    def portfolio_std(self, weights: np.ndarray) -> float:
        """Portfolio standard deviation sqrt(w^T * Sigma * w)."""
        return float(np.sqrt(max(self.portfolio_variance(weights), 0.0)))

    def portfolio_stats(self, weights: np.ndarray) -> Dict[str, float]:
        """
        Calculate all portfolio statistics.

        Returns:
            Dictionary containing mean, std and variance
        """
        var = self.portfolio_variance(weights)
        return {
            'mean': self.portfolio_return(weights),
            'std': float(np.sqrt(max(var, 0.0))),
            'variance': var
        }

    def optimize_for_target_return(
        self,
        target_return: float,
        exact: bool = False
    ) -> Portfolio:
        """
        Find the minimum variance portfolio for a target return.

        This traces one point on the efficient frontier.

        Args:
            target_return: Target expected return
            exact: If True, require the portfolio return to equal the target
                (otherwise it is a floor)

        Returns:
            Portfolio with weights, achieved return and variance

        Raises:
            InfeasibleError: If the target lies outside [min, max] of the
                individual expected returns, or the QP has no solution
        """
        portfolio = solve_point(self.formulator, target_return, exact, self.config)
        logger.debug(
            "Target %.6f: variance %.6e, return %.6f",
            target_return, portfolio.variance, portfolio.expected_return
        )
        return portfolio

    def minimum_variance_portfolio(self) -> Portfolio:
        """
        Find the long-only global Minimum Variance Portfolio (MVP).

        The MVP has the lowest possible risk among all feasible portfolios.
        It is the leftmost point on the frontier. The return floor is set
        below every individual expected return so it never binds.
        """
        low, _ = self.stats.return_range()
        portfolio = solve_point(
            self.formulator, low - 1.0, False, self.config, check_range=False
        )
        return replace(portfolio, target_return=None)

    def efficient_frontier(
        self,
        step_pct: Optional[float] = None,
        targets: Optional[Sequence[float]] = None,
        exact: bool = False,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> Frontier:
        """
        Compute the efficient frontier using discretization.

        Loops over target returns from ceil(min) to floor(max) of the
        individual expected returns in percentage-point steps.

        Args:
            step_pct: Step in percentage points (default: config.step_pct)
            targets: Explicit targets instead of the percentage scan
            exact: Treat each target as an equality
            max_workers: Thread pool size for concurrent solves
            timeout: Per-point timeout in seconds when using a thread pool

        Returns:
            Frontier ordered by target return, with any skipped points as gaps
        """
        return trace_frontier(
            self.formulator,
            targets=targets,
            step_pct=step_pct,
            exact=exact,
            max_workers=max_workers,
            timeout=timeout,
            config=self.config
        )

    def get_asset_stats(self) -> Dict[str, Dict[str, float]]:
        """
        Get individual asset statistics.

        Returns:
            Dictionary mapping symbols to their stats
        """
        stats = {}
        for i, name in enumerate(self.symbols):
            stats[name] = {
                'mean': float(self.expected_returns[i]),
                'std': float(self.stats.std_devs[i]),
                'variance': float(self.cov_matrix[i, i])
            }
        return stats

    def summary_report(self, target_return: Optional[float] = None) -> str:
        """
        Generate a summary report.

        Args:
            target_return: If given, also report the portfolio for this target

        Returns:
            Formatted string report
        """
        lines = []
        lines.append("=" * 70)
        lines.append("MINIMUM VARIANCE PORTFOLIO REPORT")
        lines.append("=" * 70)

        # Asset Statistics
        lines.append("\n--- Individual Asset Statistics ---")
        lines.append(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12} {'Variance':>12}")
        lines.append("-" * 50)

        for name, asset in self.get_asset_stats().items():
            lines.append(
                f"{name:<12} {asset['mean']:>12.6f} {asset['std']:>12.6f} "
                f"{asset['variance']:>12.6f}"
            )

        low, high = self.stats.return_range()
        lines.append(f"\nAttainable return range: [{low*100:.2f}%, {high*100:.2f}%]")

        # Minimum Variance Portfolio
        lines.append("\n--- Minimum Variance Portfolio (MVP) ---")
        lines.extend(_portfolio_lines(self.minimum_variance_portfolio()))

        if target_return is not None:
            lines.append(f"\n--- Minimum Variance Portfolio for {target_return*100:.2f}% ---")
            lines.extend(_portfolio_lines(self.optimize_for_target_return(target_return)))

        lines.append("\n" + "=" * 70)

        return "\n".join(lines)


def _portfolio_lines(portfolio: Portfolio) -> List[str]:
    lines = ["Weights:"]
    lines.extend(portfolio.format_weights())
    lines.append(
        f"Expected Return: {portfolio.expected_return:.6f} "
        f"({portfolio.expected_return*100:.2f}%)"
    )
    lines.append(f"Variance: {portfolio.variance:.6f}")
    lines.append(
        f"Standard Deviation: {portfolio.std_dev:.6f} ({portfolio.std_dev*100:.2f}%)"
    )
    return lines


def generate_sample_returns(
    n_assets: int = 4,
    n_periods: int = 60,
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate a synthetic return-series table for testing.

    Returns are drawn from a multivariate normal with a random positive
    definite covariance matrix and increasing means.

    Args:
        n_assets: Number of securities (default: 4)
        n_periods: Number of periods (default: 60)
        seed: Random seed for reproducibility

    Returns:
        Wide DataFrame indexed by period-end date, one column per symbol
    """
    rng = np.random.RandomState(seed)

    means = np.linspace(0.05, 0.20, n_assets)

    A = rng.randn(n_assets, n_assets) * 0.1
    cov_matrix = np.dot(A, A.T) + np.eye(n_assets) * 0.01

    returns = rng.multivariate_normal(means, cov_matrix, size=n_periods)

    if n_assets == 4:
        symbols = ['AAPL', 'AXP', 'BA', 'CAT']
    elif n_assets == 6:
        symbols = ['AAPL', 'AXP', 'BA', 'CAT', 'CSCO', 'CVX']
    else:
        symbols = [f'Stock_{i+1}' for i in range(n_assets)]

    dates = pd.date_range('2000-12-31', periods=n_periods, freq='YE')
    return pd.DataFrame(returns, index=pd.Index(dates, name='date'), columns=symbols)
