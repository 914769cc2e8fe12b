"""Visualization modules for frontier analysis."""

from minvar_frontier.visualization.plots import (
    plot_frontier,
    plot_portfolio_weights,
)

__all__ = [
    "plot_frontier",
    "plot_portfolio_weights",
]
