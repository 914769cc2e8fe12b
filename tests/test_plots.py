"""Tests for the frontier and weight charts."""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pytest

from minvar_frontier.core.frontier import trace_frontier
from minvar_frontier.core.optimizer import PortfolioOptimizer
from minvar_frontier.visualization import plot_frontier, plot_portfolio_weights


@pytest.fixture
def gapped_frontier(six_stats):
    """Frontier with one target above every expected return."""
    return trace_frontier(six_stats, targets=[0.010, 0.012, 0.020])


class TestPlotFrontier:
    """Tests for plot_frontier."""

    def test_skipped_targets_are_not_drawn_as_zero_variance(self, gapped_frontier, six_stats):
        fig = plot_frontier(gapped_frontier, six_stats)
        ax = fig.axes[0]

        for collection in ax.collections:
            offsets = np.asarray(collection.get_offsets())
            assert np.all(offsets[:, 0] > 0)
        assert ax.get_xlim()[0] > 0
        plt.close(fig)

    def test_skipped_target_marked_at_its_return(self, gapped_frontier):
        fig = plot_frontier(gapped_frontier)
        ax = fig.axes[0]

        skipped = [line for line in ax.get_lines() if line.get_label() == 'Skipped targets']
        assert len(skipped) == 1
        assert skipped[0].get_ydata()[0] == pytest.approx(2.0)
        plt.close(fig)

    def test_saves_png(self, gapped_frontier, tmp_path):
        path = tmp_path / "frontier.png"
        fig = plot_frontier(gapped_frontier, save_path=str(path))

        assert path.exists()
        plt.close(fig)


class TestPlotWeights:
    """Tests for plot_portfolio_weights."""

    def test_one_bar_per_security(self, six_stats):
        portfolio = PortfolioOptimizer(six_stats).optimize_for_target_return(0.012)
        fig = plot_portfolio_weights(portfolio)

        bars = fig.axes[0].patches
        assert len(bars) == 6
        heights = [bar.get_height() for bar in bars]
        assert sum(heights) == pytest.approx(100.0, abs=1e-4)
        assert "1.20%" in fig.axes[0].get_title()
        plt.close(fig)
