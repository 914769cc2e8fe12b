"""Unit tests for the QP formulator."""

import numpy as np
import pytest

from minvar_frontier.core.formulator import QPFormulator


class TestQPFormulator:
    """Tests for QPFormulator.formulate."""

    def test_objective_is_twice_covariance(self, six_stats):
        qp = QPFormulator(six_stats).formulate(0.01)

        np.testing.assert_allclose(qp.D, 2 * six_stats.cov_matrix)
        np.testing.assert_array_equal(qp.d, np.zeros(6))

    def test_constraint_layout(self, six_stats):
        """Budget row, return row, then one non-negativity row per security."""
        qp = QPFormulator(six_stats).formulate(0.01)

        assert qp.A.shape == (8, 6)
        np.testing.assert_array_equal(qp.A[0], np.ones(6))
        np.testing.assert_allclose(qp.A[1], six_stats.expected_returns)
        np.testing.assert_array_equal(qp.A[2:], np.eye(6))

    def test_right_hand_side(self, six_stats):
        qp = QPFormulator(six_stats).formulate(0.0125)

        assert qp.b.shape == (8,)
        assert qp.b[0] == 1.0
        assert qp.b[1] == pytest.approx(0.0125)
        np.testing.assert_array_equal(qp.b[2:], np.zeros(6))
        assert qp.meq == 1
        assert qp.target_return == pytest.approx(0.0125)

    def test_exact_makes_return_row_an_equality(self, six_stats):
        qp = QPFormulator(six_stats).formulate(0.0125, exact=True)
        assert qp.meq == 2

    def test_fixed_structure_is_shared(self, six_stats):
        """Only the right-hand side changes between targets."""
        formulator = QPFormulator(six_stats)
        low = formulator.formulate(0.005)
        high = formulator.formulate(0.012)

        assert low.D is high.D
        assert low.A is high.A
        assert low.b is not high.b
        assert low.b[1] != high.b[1]

    def test_arrays_are_read_only(self, six_stats):
        qp = QPFormulator(six_stats).formulate(0.01)

        with pytest.raises(ValueError):
            qp.b[1] = 0.5
        with pytest.raises(ValueError):
            qp.A[0, 0] = 2.0
        with pytest.raises(ValueError):
            qp.D[0, 0] = 2.0

    def test_sizes(self, two_stats):
        qp = QPFormulator(two_stats).formulate(0.15)
        assert qp.n_vars == 2
        assert qp.n_constraints == 4
