"""Core computational modules for minimum-variance portfolio optimization."""

from minvar_frontier.core.errors import (
    PortfolioError,
    DataError,
    NumericalError,
    InfeasibleError,
    UnboundedError,
)
from minvar_frontier.core.config import OptimizerConfig
from minvar_frontier.core.statistics import AssetStatistics, compute_statistics
from minvar_frontier.core.formulator import QPFormulator, QuadraticProgram
from minvar_frontier.core.solver import QPSolution, solve_qp
from minvar_frontier.core.portfolio import Portfolio
from minvar_frontier.core.frontier import (
    Frontier,
    FrontierGap,
    check_target_range,
    scan_targets,
    trace_frontier,
)
from minvar_frontier.core.optimizer import PortfolioOptimizer, generate_sample_returns
from minvar_frontier.core.loader import DataLoader, load_return_series

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
    "QuadraticProgram",
    "QPSolution",
    "solve_qp",
    "Portfolio",
    "Frontier",
    "FrontierGap",
    "check_target_range",
    "scan_targets",
    "trace_frontier",
    "PortfolioOptimizer",
    "generate_sample_returns",
    "DataLoader",
    "load_return_series",
]
