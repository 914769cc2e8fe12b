"""
Statistics Engine
=================

Derives per-security expected returns, standard deviations and the sample
covariance matrix from a return-series table.

The securities are put in a fixed order when the statistics are computed and
every downstream vector and matrix is indexed positionally against that
order.

Accepted table shapes:
1. Long: one row per observation with 'symbol', 'date' and 'return' columns
2. Wide: index = period, one column of returns per symbol
3. Mapping: symbol -> sequence of (date, return) pairs (or a pandas Series)

Every security must cover exactly the same periods. Missing periods are
reported as a DataError rather than dropped.
"""

import logging
from dataclasses import dataclass
from typing import Tuple, List, Optional, Dict, Any, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from minvar_frontier.core.errors import DataError

logger = logging.getLogger(__name__)

LONG_COLUMNS = ('symbol', 'date', 'return')

ReturnTable = Union[pd.DataFrame, Mapping[str, Any]]


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class AssetStatistics:
    """
    Expected returns and covariance for a fixed, ordered set of securities.

    Attributes:
        symbols: Security symbols, in the order used by every vector/matrix
        expected_returns: Mean periodic return per security (length N)
        std_devs: Standard deviation per security (length N)
        cov_matrix: Covariance matrix (N x N)
        n_periods: Number of periods each security was observed over
    """

    symbols: Tuple[str, ...]
    expected_returns: np.ndarray
    std_devs: np.ndarray
    cov_matrix: np.ndarray
    n_periods: int

    @property
    def n_assets(self) -> int:
        return len(self.symbols)

    @classmethod
    def from_moments(
        cls,
        expected_returns: Union[Sequence[float], np.ndarray],
        cov_matrix: Union[Sequence[Sequence[float]], np.ndarray],
        symbols: Optional[Sequence[str]] = None,
        n_periods: int = 0
    ) -> "AssetStatistics":
        """
        Build statistics from pre-computed moments.

        Args:
            expected_returns: Vector of expected returns
            cov_matrix: Covariance matrix (n x n)
            symbols: Optional symbols (default: Asset_1, Asset_2, ...)
            n_periods: Number of periods the moments came from, if known

        Raises:
            DataError: If the inputs are empty, non-finite or mis-shaped
        """
        means = np.array(expected_returns, dtype=float).flatten()
        cov = np.atleast_2d(np.array(cov_matrix, dtype=float))
        n_assets = len(means)

        if n_assets == 0:
            raise DataError("No securities supplied")

        if cov.shape != (n_assets, n_assets):
            raise DataError(
                f"Covariance matrix shape {cov.shape} doesn't match "
                f"number of securities {n_assets}"
            )

        if not np.all(np.isfinite(means)):
            raise DataError("Expected returns contain NaN or Inf")
        if not np.all(np.isfinite(cov)):
            raise DataError("Covariance matrix contains NaN or Inf")

        diag = np.diag(cov)
        if np.any(diag < 0):
            raise DataError("Covariance matrix has negative variances on its diagonal")

        if symbols is None:
            symbols = [f"Asset_{i+1}" for i in range(n_assets)]
        symbols = tuple(str(s) for s in symbols)
        if len(symbols) != n_assets:
            raise DataError(
                f"Got {len(symbols)} symbols for {n_assets} securities"
            )
        if len(set(symbols)) != n_assets:
            raise DataError("Symbols must be unique")

        return cls(
            symbols=symbols,
            expected_returns=_readonly(means),
            std_devs=_readonly(np.sqrt(diag)),
            cov_matrix=_readonly(cov),
            n_periods=n_periods
        )

    def as_frame(self) -> pd.DataFrame:
        """Per-security table of expected return and standard deviation."""
        return pd.DataFrame(
            {'expected_return': self.expected_returns, 'std_dev': self.std_devs},
            index=pd.Index(self.symbols, name='symbol')
        )

    def covariance_frame(self) -> pd.DataFrame:
        """Covariance matrix keyed by symbol pairs."""
        return pd.DataFrame(
            self.cov_matrix,
            index=pd.Index(self.symbols, name='symbol'),
            columns=list(self.symbols)
        )

    def return_range(self) -> Tuple[float, float]:
        """(min, max) of the individual expected returns."""
        return float(self.expected_returns.min()), float(self.expected_returns.max())


def _find_long_columns(df: pd.DataFrame) -> Optional[Dict[str, Any]]:
    lookup = {str(col).strip().lower(): col for col in df.columns}
    if all(name in lookup for name in LONG_COLUMNS):
        return {name: lookup[name] for name in LONG_COLUMNS}
    return None


def _pivot_long(df: pd.DataFrame, columns: Dict[str, Any]) -> pd.DataFrame:
    """Pivot a long (symbol, date, return) table to wide, rejecting duplicates."""
    long_df = df[[columns['symbol'], columns['date'], columns['return']]].copy()
    long_df.columns = list(LONG_COLUMNS)

    duplicated = long_df.duplicated(subset=['symbol', 'date'], keep=False)
    if duplicated.any():
        first = long_df[duplicated].iloc[0]
        raise DataError(
            f"Duplicate observation for {first['symbol']} on period {first['date']}"
        )

    symbols = list(pd.unique(long_df['symbol']))
    wide = long_df.pivot(index='date', columns='symbol', values='return')
    return wide[symbols]


def _mapping_to_wide(table: Mapping[str, Any]) -> pd.DataFrame:
    columns = {}
    for symbol, series in table.items():
        if isinstance(series, pd.Series):
            column = series
        else:
            pairs = list(series)
            if pairs and not all(len(pair) == 2 for pair in pairs):
                raise DataError(
                    f"Returns for {symbol} must be (period, return) pairs"
                )
            column = pd.Series(
                [value for _, value in pairs],
                index=[period for period, _ in pairs],
                dtype=object
            )
        if column.index.has_duplicates:
            raise DataError(f"Duplicate periods in the returns for {symbol}")
        columns[str(symbol)] = column

    if not columns:
        raise DataError("Return series is empty")

    return pd.concat(columns, axis=1)


def to_wide_returns(table: ReturnTable) -> pd.DataFrame:
    """
    Normalize any accepted return table shape to a wide numeric frame.

    The result has one row per period (sorted ascending) and one column per
    symbol, in the symbol order that the statistics will use.

    Raises:
        DataError: If the table is empty, has duplicate or misaligned
            periods, or contains non-numeric/non-finite returns
    """
    if isinstance(table, pd.DataFrame):
        if table.empty:
            raise DataError("Return series is empty")
        columns = _find_long_columns(table)
        wide = _pivot_long(table, columns) if columns is not None else table.copy()
        if columns is None and wide.index.has_duplicates:
            raise DataError("Return series has duplicate periods")
    elif isinstance(table, Mapping):
        wide = _mapping_to_wide(table)
    else:
        raise DataError(
            f"Unsupported return table type: {type(table).__name__}"
        )

    if wide.shape[1] == 0:
        raise DataError("Return series has no securities")
    if wide.shape[0] == 0:
        raise DataError("Return series is empty")

    try:
        wide = wide.apply(pd.to_numeric, errors='raise')
    except (ValueError, TypeError) as e:
        raise DataError(f"Return series contains non-numeric values: {e}") from e

    try:
        wide = wide.sort_index()
    except TypeError as e:
        raise DataError(f"Periods cannot be ordered: {e}") from e

    # Each symbol must be observed on every period any other symbol has
    missing = wide.isna()
    if missing.any().any():
        counts = wide.notna().sum()
        short = counts[counts < 2]
        if len(short) > 0:
            raise DataError(
                f"Security {short.index[0]} has {int(short.iloc[0])} observation(s); "
                f"at least 2 are required"
            )
        symbol = missing.any()[missing.any()].index[0]
        periods = list(wide.index[missing[symbol]])
        raise DataError(
            f"Security {symbol} is missing {len(periods)} period(s) present for "
            f"other securities, first missing: {periods[0]}"
        )

    if not np.all(np.isfinite(wide.values)):
        raise DataError("Return series contains Inf values")

    wide.columns = [str(col) for col in wide.columns]
    if len(set(wide.columns)) != wide.shape[1]:
        raise DataError("Security symbols must be unique")

    return wide


def compute_statistics(table: ReturnTable, ddof: int = 1) -> AssetStatistics:
    """
    Compute expected returns, standard deviations and covariance.

    Uses the arithmetic mean and the sample (N-1) covariance by default:
    Cov = (R - mean)^T * (R - mean) / (T - ddof)

    Args:
        table: Return-series table (long, wide or mapping)
        ddof: Delta degrees of freedom (1 = sample, 0 = population)

    Returns:
        AssetStatistics with a fixed symbol ordering

    Raises:
        DataError: If the table is empty, misaligned, or any security has
            fewer than 2 observations

    Example:
        >>> returns = pd.DataFrame({'AAA': [0.1, 0.2, 0.15], 'BBB': [0.05, 0.0, 0.1]})
        >>> stats = compute_statistics(returns)
        >>> stats.symbols
        ('AAA', 'BBB')
    """
    wide = to_wide_returns(table)
    n_periods, n_assets = wide.shape

    if n_periods < 2:
        raise DataError(
            f"Security {wide.columns[0]} has {n_periods} observation(s); "
            f"at least 2 are required"
        )

    returns = wide.values.astype(float)
    means = returns.mean(axis=0)

    demeaned = returns - means
    cov = np.dot(demeaned.T, demeaned) / (n_periods - ddof)
    cov = (cov + cov.T) / 2

    logger.debug(
        "Computed statistics for %d securities over %d periods", n_assets, n_periods
    )

    return AssetStatistics(
        symbols=tuple(wide.columns),
        expected_returns=_readonly(means),
        std_devs=_readonly(np.sqrt(np.diag(cov))),
        cov_matrix=_readonly(cov),
        n_periods=n_periods
    )
