"""
Minimum-Variance Frontier - Long-Only Portfolio QP
==================================================

Minimum-variance portfolio allocation for a target expected return, and the
efficient frontier across the attainable return range.

Usage:
    from minvar_frontier import PortfolioOptimizer, compute_statistics
    from minvar_frontier.visualization import plot_frontier

Classes:
    PortfolioOptimizer - Target-return and frontier optimization
    DataLoader - Return-series loading from CSV/Excel

Functions:
    compute_statistics - Expected returns and covariance from a return table
    solve_qp - Active-set convex QP solver
    trace_frontier - Frontier scan over target returns
"""

from minvar_frontier.core import (
    PortfolioError,
    DataError,
    NumericalError,
    InfeasibleError,
    UnboundedError,
    OptimizerConfig,
    AssetStatistics,
    compute_statistics,
    QPFormulator,
    solve_qp,
    Portfolio,
    Frontier,
    scan_targets,
    trace_frontier,
    PortfolioOptimizer,
    generate_sample_returns,
    DataLoader,
    load_return_series,
)

__version__ = "1.0.0"

__all__ = [
    "PortfolioError",
    "DataError",
    "NumericalError",
    "InfeasibleError",
    "UnboundedError",
    "OptimizerConfig",
    "AssetStatistics",
    "compute_statistics",
    "QPFormulator",
    "solve_qp",
    "Portfolio",
    "Frontier",
    "scan_targets",
    "trace_frontier",
    "PortfolioOptimizer",
    "generate_sample_returns",
    "DataLoader",
    "load_return_series",
]
