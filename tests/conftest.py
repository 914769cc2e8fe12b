"""Shared fixtures for the optimization tests."""

import numpy as np
import pandas as pd
import pytest

from minvar_frontier.core.statistics import AssetStatistics


# Monthly moments for six Dow stocks
SIX_SYMBOLS = ['HD', 'IBM', 'INTC', 'JNJ', 'JPM', 'KO']

SIX_MEANS = [0.015392, -0.001335, 0.013972, 0.008750, 0.014342, 0.006737]

SIX_COV = [
    [0.00257569, 0.00144976, 0.00059154, 0.00051405, 0.00117486, 0.00061042],
    [0.00144976, 0.00420389, 0.00153980, 0.00077403, 0.00169090, 0.00034819],
    [0.00059154, 0.00153980, 0.00382510, 0.00072826, 0.00104477, 0.00048172],
    [0.00051405, 0.00077403, 0.00072826, 0.00159242, 0.00084915, 0.00082336],
    [0.00117486, 0.00169090, 0.00104477, 0.00084915, 0.00322618, 0.00039425],
    [0.00061042, 0.00034819, 0.00048172, 0.00082336, 0.00039425, 0.00147278],
]


@pytest.fixture
def six_stats():
    """Six securities with a positive definite covariance matrix."""
    return AssetStatistics.from_moments(SIX_MEANS, SIX_COV, SIX_SYMBOLS)


@pytest.fixture
def two_stats():
    """Two uncorrelated securities: mu = [0.1, 0.2], var = [0.04, 0.09]."""
    return AssetStatistics.from_moments([0.1, 0.2], [[0.04, 0.0], [0.0, 0.09]], ['LOW', 'HIGH'])


@pytest.fixture
def wide_returns():
    """Three yearly periods for two securities, wide layout."""
    index = pd.Index(pd.to_datetime(['2019-12-31', '2020-12-31', '2021-12-31']), name='date')
    return pd.DataFrame({'AAA': [0.1, 0.2, 0.3], 'BBB': [0.3, 0.1, 0.2]}, index=index)


@pytest.fixture
def long_returns(wide_returns):
    """The wide_returns table in long (symbol, date, return) layout."""
    rows = []
    for symbol in wide_returns.columns:
        for date, value in wide_returns[symbol].items():
            rows.append({'symbol': symbol, 'date': date, 'return': value})
    return pd.DataFrame(rows)


def assert_valid_weights(weights, tol=1e-6):
    """Weights sum to one and are non-negative up to solver tolerance."""
    weights = np.asarray(weights)
    assert weights.sum() == pytest.approx(1.0, abs=tol)
    assert np.all(weights >= -1e-9)
