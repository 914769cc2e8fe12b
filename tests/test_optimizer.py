"""Unit tests for PortfolioOptimizer."""

import numpy as np
import pytest

from minvar_frontier.core.config import OptimizerConfig
from minvar_frontier.core.errors import DataError, InfeasibleError
from minvar_frontier.core.optimizer import PortfolioOptimizer, generate_sample_returns

from conftest import assert_valid_weights


@pytest.fixture
def optimizer(six_stats):
    return PortfolioOptimizer(six_stats)


class TestTargetReturn:
    """Tests for optimize_for_target_return."""

    @pytest.mark.parametrize("target", np.linspace(-0.001, 0.015, 9))
    def test_portfolio_is_valid(self, optimizer, target):
        portfolio = optimizer.optimize_for_target_return(target)

        assert_valid_weights(portfolio.weights)
        assert portfolio.expected_return >= target - 1e-9
        assert portfolio.variance == pytest.approx(
            optimizer.portfolio_variance(portfolio.weights), rel=1e-9
        )
        assert portfolio.symbols == optimizer.symbols

    def test_floor_binds_above_minimum_variance_return(self, optimizer):
        """On the efficient side the achieved return equals the target."""
        gmv_return = optimizer.minimum_variance_portfolio().expected_return

        for target in np.linspace(gmv_return + 1e-4, 0.015, 5):
            portfolio = optimizer.optimize_for_target_return(target)
            assert portfolio.expected_return == pytest.approx(target, abs=1e-8)

    def test_exact_below_minimum_variance_return(self, optimizer):
        gmv = optimizer.minimum_variance_portfolio()
        target = gmv.expected_return - 0.003

        floor = optimizer.optimize_for_target_return(target)
        exact = optimizer.optimize_for_target_return(target, exact=True)

        assert exact.expected_return == pytest.approx(target, abs=1e-9)
        assert exact.variance >= floor.variance - 1e-12

    def test_higher_target_costs_variance(self, optimizer):
        low = optimizer.optimize_for_target_return(0.011)
        high = optimizer.optimize_for_target_return(0.014)
        assert high.variance > low.variance

    def test_idempotent(self, optimizer):
        first = optimizer.optimize_for_target_return(0.012)
        second = optimizer.optimize_for_target_return(0.012)

        np.testing.assert_array_equal(first.weights, second.weights)
        assert first.variance == second.variance

    @pytest.mark.parametrize("target", [0.02, -0.01])
    def test_outside_attainable_range(self, optimizer, target):
        with pytest.raises(InfeasibleError, match="attainable range") as excinfo:
            optimizer.optimize_for_target_return(target)
        assert excinfo.value.target_return == target

    def test_two_assets(self, two_stats):
        portfolio = PortfolioOptimizer(two_stats).optimize_for_target_return(0.15)

        np.testing.assert_allclose(portfolio.weights, [0.5, 0.5], atol=1e-9)
        assert portfolio.variance == pytest.approx(0.0325)
        assert portfolio.std_dev == pytest.approx(np.sqrt(0.0325))


class TestSingleSecurity:
    """A single security is the whole portfolio."""

    def test_full_weight(self):
        optimizer = PortfolioOptimizer.from_moments([0.08], [[0.04]], ['ONLY'])
        portfolio = optimizer.optimize_for_target_return(0.08)

        np.testing.assert_allclose(portfolio.weights, [1.0])
        assert portfolio.variance == pytest.approx(0.04)

    @pytest.mark.parametrize("target", [0.09, 0.07])
    def test_other_targets_infeasible(self, target):
        optimizer = PortfolioOptimizer.from_moments([0.08], [[0.04]], ['ONLY'])

        with pytest.raises(InfeasibleError):
            optimizer.optimize_for_target_return(target)


class TestMinimumVariance:
    """Tests for minimum_variance_portfolio."""

    def test_lowest_variance_on_frontier(self, optimizer):
        gmv = optimizer.minimum_variance_portfolio()
        frontier = optimizer.efficient_frontier(step_pct=0.1)

        assert gmv.target_return is None
        assert_valid_weights(gmv.weights)
        assert np.all(frontier.variances >= gmv.variance - 1e-12)

    def test_inverse_variance_for_uncorrelated(self, two_stats):
        gmv = PortfolioOptimizer(two_stats).minimum_variance_portfolio()

        expected = np.array([1 / 0.04, 1 / 0.09])
        np.testing.assert_allclose(gmv.weights, expected / expected.sum(), atol=1e-9)


class TestConstruction:
    """Alternate constructors and configuration."""

    def test_from_returns(self, wide_returns):
        optimizer = PortfolioOptimizer.from_returns(wide_returns)

        assert optimizer.symbols == ('AAA', 'BBB')
        assert optimizer.n_assets == 2
        assert optimizer.cov_matrix[0, 1] == pytest.approx(-0.005)

    def test_from_returns_population_config(self, wide_returns):
        optimizer = PortfolioOptimizer.from_returns(wide_returns, OptimizerConfig(ddof=0))
        assert optimizer.cov_matrix[0, 0] == pytest.approx(0.02 / 3)

    def test_from_returns_propagates_data_errors(self):
        with pytest.raises(DataError):
            PortfolioOptimizer.from_returns({})

    @pytest.mark.parametrize("kwargs", [
        {'psd_tol': 0},
        {'feasibility_tol': -1e-9},
        {'step_pct': 0},
        {'target_tol': -1.0},
        {'max_iter': 0},
        {'ddof': 2},
    ])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ValueError):
            OptimizerConfig(**kwargs)

    def test_iteration_limit(self):
        assert OptimizerConfig().iteration_limit(6, 8) == 190
        assert OptimizerConfig(max_iter=5).iteration_limit(6, 8) == 5

    def test_sample_returns(self):
        table = generate_sample_returns(4, n_periods=24)

        assert list(table.columns) == ['AAPL', 'AXP', 'BA', 'CAT']
        assert len(table) == 24
        assert table.index.name == 'date'


class TestReporting:
    """Portfolio metrics and the text report."""

    def test_portfolio_stats(self, two_stats):
        optimizer = PortfolioOptimizer(two_stats)
        stats = optimizer.portfolio_stats(np.array([0.5, 0.5]))

        assert stats['mean'] == pytest.approx(0.15)
        assert stats['variance'] == pytest.approx(0.0325)
        assert stats['std'] == pytest.approx(np.sqrt(0.0325))

    def test_asset_stats(self, two_stats):
        asset_stats = PortfolioOptimizer(two_stats).get_asset_stats()

        assert list(asset_stats) == ['LOW', 'HIGH']
        assert asset_stats['HIGH']['std'] == pytest.approx(0.3)

    def test_summary_report(self, optimizer):
        report = optimizer.summary_report(target_return=0.012)

        assert "MINIMUM VARIANCE PORTFOLIO REPORT" in report
        assert "Attainable return range: [-0.13%, 1.54%]" in report
        assert "Minimum Variance Portfolio for 1.20%" in report
        for symbol in optimizer.symbols:
            assert symbol in report

    def test_weight_lines(self, two_stats):
        portfolio = PortfolioOptimizer(two_stats).optimize_for_target_return(0.15)
        assert portfolio.format_weights() == ["  LOW:     50.00%", "  HIGH:    50.00%"]


class TestFiveSecurityScenario:
    """Published five-security solution at a 50% target return.

    Only the expected returns and the resulting weights are available, so
    this checks that the quoted portfolio is feasible and hits the target.
    """

    MEANS = np.array([0.3902, 0.1191, 0.2059, 0.9239, 1.3688])
    WEIGHTS = np.array([0.2043, 0.0, 0.502, 0.1912, 0.1024])

    def test_quoted_weights_are_fully_invested(self):
        assert self.WEIGHTS.sum() == pytest.approx(1.0, abs=1e-3)
        assert np.all(self.WEIGHTS >= 0)

    def test_quoted_weights_reach_target(self):
        assert np.dot(self.WEIGHTS, self.MEANS) == pytest.approx(0.5, abs=1e-3)

    def test_target_inside_attainable_range(self):
        assert self.MEANS.min() < 0.5 < self.MEANS.max()
