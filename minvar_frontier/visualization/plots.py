"""
Plotting Module for Minimum-Variance Portfolios
================================================

This module draws:
- The efficient frontier as variance (x) against target return (y)
- Individual securities on the same plane
- The weights of a single portfolio as a bar chart

Figures are returned so callers can show or further style them.
"""

from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from minvar_frontier.core.frontier import Frontier
from minvar_frontier.core.portfolio import Portfolio
from minvar_frontier.core.statistics import AssetStatistics


def plot_frontier(
    frontier: Frontier,
    stats: Optional[AssetStatistics] = None,
    highlight: Optional[Portfolio] = None,
    figsize: Tuple[int, int] = (12, 8),
    save_path: Optional[str] = None,
    title: str = "Minimum-Variance Frontier"
) -> Figure:
    """
    Plot the frontier curve.

    Args:
        frontier: Traced frontier
        stats: If provided, mark each security at (variance, expected return)
        highlight: Optional portfolio to mark on the curve
        figsize: Figure size (width, height)
        save_path: If provided, save the figure to this path
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(frontier.variances, frontier.targets * 100,
            'b-', linewidth=2, marker='.', label='Minimum-Variance Frontier', zorder=2)

    # Skipped targets have no variance; mark their return level only
    for i, gap in enumerate(frontier.gaps):
        ax.axhline(gap.target_return * 100, color='grey', linestyle=':', linewidth=1,
                   label='Skipped targets' if i == 0 else None, zorder=1)

    if stats is not None:
        variances = np.diag(stats.cov_matrix)
        returns = stats.expected_returns
        ax.scatter(variances, returns * 100,
                   c='red', s=100, marker='o', edgecolors='black',
                   label='Individual Securities', zorder=5)

        for i, name in enumerate(stats.symbols):
            ax.annotate(name, (variances[i], returns[i] * 100),
                        xytext=(5, 5), textcoords='offset points',
                        fontsize=9, fontweight='bold')

    if highlight is not None:
        ax.scatter([highlight.variance], [highlight.expected_return * 100],
                   c='gold', s=200, marker='D', edgecolors='black',
                   label=f"Target {highlight.target_return*100:.2f}% "
                         f"(var={highlight.variance:.4f})",
                   zorder=6)

    ax.set_xlabel('Portfolio Variance', fontsize=12)
    ax.set_ylabel('Expected Return %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='lower right', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_portfolio_weights(
    portfolio: Portfolio,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of portfolio weights.

    Args:
        portfolio: Solved portfolio
        title: Plot title (default names the target return)
        figsize: Figure size
        save_path: Optional path to save figure

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    weights = np.asarray(portfolio.weights)
    bars = ax.bar(list(portfolio.symbols), weights * 100, color='green', edgecolor='black')

    for bar, w in zip(bars, weights):
        ax.annotate(f'{w*100:.1f}%',
                    xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    xytext=(0, 3), textcoords='offset points',
                    ha='center', va='bottom', fontsize=10, fontweight='bold')

    if title is None:
        if portfolio.target_return is not None:
            title = f"Portfolio Weights for {portfolio.target_return*100:.2f}% Target Return"
        else:
            title = "Portfolio Weights"

    ax.set_xlabel('Securities', fontsize=12)
    ax.set_ylabel('Weight %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
