"""
Data Loader Module for Portfolio Optimization
==============================================

This module reads return-series tables from files:
- CSV files
- Excel files (.xlsx via openpyxl)

Two layouts are understood:
1. Long: one row per observation with 'symbol', 'date' and 'return' columns
2. Wide: first column is the period-end date, one return column per symbol

Prices are never converted here; the files must already hold periodic
returns. Misaligned periods are left in place so the statistics engine can
report them.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from minvar_frontier.core.errors import DataError
from minvar_frontier.core.statistics import (
    AssetStatistics,
    LONG_COLUMNS,
    compute_statistics,
)

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = ('.xlsx', '.xlsm')


class DataLoader:
    """
    Loads return-series tables from CSV and Excel files.

    Example:
        >>> loader = DataLoader()
        >>> table = loader.load_return_series("returns.csv")
        >>> stats = loader.load_statistics("returns.csv")
    """

    def __init__(self, ddof: int = 1):
        """
        Initialize the DataLoader.

        Args:
            ddof: Delta degrees of freedom used by load_statistics (1 = sample)
        """
        self.ddof = ddof

    def load_return_series(
        self,
        file_path: Union[str, Path],
        sheet: Optional[Union[str, int]] = None
    ) -> pd.DataFrame:
        """
        Load a return-series table.

        Args:
            file_path: Path to a .csv or Excel file
            sheet: Sheet name or index for Excel files (default: first sheet)

        Returns:
            Long frame (symbol, date, return) or wide frame indexed by date

        Raises:
            DataError: If the file is missing, unreadable or has an
                unsupported extension
        """
        path = Path(file_path)
        if not path.exists():
            raise DataError(f"Return series file not found: {path}")

        suffix = path.suffix.lower()
        try:
            if suffix == '.csv':
                df = pd.read_csv(path)
            elif suffix in EXCEL_SUFFIXES:
                df = pd.read_excel(
                    path,
                    sheet_name=sheet if sheet is not None else 0,
                    engine='openpyxl'
                )
            else:
                raise DataError(
                    f"Unsupported file type '{suffix}'. Use .csv or .xlsx"
                )
        except DataError:
            raise
        except (OSError, ValueError) as e:
            raise DataError(f"Could not read {path}: {e}") from e

        logger.info("Loaded %d rows x %d columns from %s", df.shape[0], df.shape[1], path.name)
        return self.normalize(df)

    def normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Put a raw table into one of the layouts the statistics engine accepts.

        Long tables are returned with lower-case column names. Wide tables get
        their first column (the period-end date) as the index, and fully empty
        rows/columns (spreadsheet padding) are dropped.
        """
        df = df.dropna(how='all').dropna(axis=1, how='all')
        if df.empty:
            raise DataError("Return series is empty")

        lookup = {str(col).strip().lower(): col for col in df.columns}
        if all(name in lookup for name in LONG_COLUMNS):
            long_df = df[[lookup[name] for name in LONG_COLUMNS]].copy()
            long_df.columns = list(LONG_COLUMNS)
            long_df['symbol'] = long_df['symbol'].astype(str).str.strip()
            long_df['date'] = _parse_dates(long_df['date'])
            return long_df

        if df.shape[1] < 2:
            raise DataError(
                "Wide return series needs a date column and at least one symbol column"
            )

        wide = df.set_index(df.columns[0])
        wide.index = _parse_dates(wide.index.to_series()).values
        wide.index.name = 'date'
        wide.columns = [str(col).strip() for col in wide.columns]
        return wide

    def load_statistics(
        self,
        file_path: Union[str, Path],
        sheet: Optional[Union[str, int]] = None
    ) -> AssetStatistics:
        """Load a return-series file and compute its statistics."""
        return compute_statistics(self.load_return_series(file_path, sheet), ddof=self.ddof)


def _parse_dates(values: pd.Series) -> pd.Series:
    """Parse text period labels as dates when they all parse, else keep them as-is."""
    if not (pd.api.types.is_object_dtype(values) or pd.api.types.is_string_dtype(values)):
        return values
    try:
        return pd.to_datetime(values)
    except (ValueError, TypeError):
        return values


def load_return_series(
    file_path: Union[str, Path],
    sheet: Optional[Union[str, int]] = None
) -> pd.DataFrame:
    """
    Convenience function to load a return-series table.

    Args:
        file_path: Path to a .csv or Excel file
        sheet: Sheet name or index for Excel files

    Returns:
        Return-series table accepted by compute_statistics
    """
    return DataLoader().load_return_series(file_path, sheet)
