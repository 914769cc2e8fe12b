"""Unit tests for the return-series loader."""

import numpy as np
import pandas as pd
import pytest

from minvar_frontier.core.errors import DataError
from minvar_frontier.core.loader import DataLoader, load_return_series


@pytest.fixture
def loader():
    return DataLoader()


class TestLoadReturnSeries:
    """Tests for CSV and Excel loading."""

    def test_wide_csv(self, loader, tmp_path, wide_returns):
        path = tmp_path / "returns.csv"
        wide_returns.to_csv(path)

        table = loader.load_return_series(path)

        assert list(table.columns) == ['AAA', 'BBB']
        assert table.index.name == 'date'
        assert isinstance(table.index, pd.DatetimeIndex)
        np.testing.assert_allclose(table['BBB'].values, [0.3, 0.1, 0.2])

    def test_long_csv(self, loader, tmp_path, long_returns):
        path = tmp_path / "returns.csv"
        long_returns.rename(columns={'symbol': 'Symbol', 'return': 'RETURN'}).to_csv(
            path, index=False
        )

        table = loader.load_return_series(path)

        assert list(table.columns) == ['symbol', 'date', 'return']
        assert set(table['symbol']) == {'AAA', 'BBB'}

    def test_excel_statistics_match_csv(self, loader, tmp_path, wide_returns):
        csv_path = tmp_path / "returns.csv"
        xlsx_path = tmp_path / "returns.xlsx"
        wide_returns.to_csv(csv_path)
        wide_returns.to_excel(xlsx_path, sheet_name='Returns')

        from_csv = loader.load_statistics(csv_path)
        from_excel = loader.load_statistics(xlsx_path, sheet='Returns')

        assert from_excel.symbols == from_csv.symbols
        np.testing.assert_allclose(from_excel.cov_matrix, from_csv.cov_matrix)

    def test_spreadsheet_padding_dropped(self, loader, tmp_path, wide_returns):
        """Empty trailing rows and columns are ignored."""
        padded = wide_returns.reset_index()
        padded['Unnamed'] = np.nan
        padded.loc[len(padded)] = np.nan
        path = tmp_path / "padded.csv"
        padded.to_csv(path, index=False)

        stats = loader.load_statistics(path)

        assert stats.symbols == ('AAA', 'BBB')
        assert stats.n_periods == 3

    def test_module_function(self, tmp_path, wide_returns):
        path = tmp_path / "returns.csv"
        wide_returns.to_csv(path)
        assert load_return_series(path).shape == (3, 2)


class TestLoaderErrors:
    """Files the loader cannot use."""

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(DataError, match="not found"):
            loader.load_return_series(tmp_path / "missing.csv")

    def test_unsupported_suffix(self, loader, tmp_path):
        path = tmp_path / "returns.json"
        path.write_text("{}")

        with pytest.raises(DataError, match="Unsupported file type"):
            loader.load_return_series(path)

    def test_empty_file(self, loader, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")

        with pytest.raises(DataError):
            loader.load_return_series(path)

    def test_date_column_only(self, loader, tmp_path):
        path = tmp_path / "dates.csv"
        path.write_text("date\n2020-12-31\n2021-12-31\n")

        with pytest.raises(DataError, match="at least one symbol"):
            loader.load_return_series(path)

    def test_misaligned_file(self, loader, tmp_path):
        path = tmp_path / "holes.csv"
        path.write_text(
            "date,AAA,BBB\n"
            "2019-12-31,0.1,0.3\n"
            "2020-12-31,0.2,\n"
            "2021-12-31,0.3,0.2\n"
        )

        with pytest.raises(DataError, match="BBB is missing 1 period"):
            loader.load_statistics(path)

    def test_legacy_xls_rejected(self, loader, tmp_path):
        """Only openpyxl formats are read; .xls would need another engine."""
        path = tmp_path / "returns.xls"
        path.write_bytes(b"")

        with pytest.raises(DataError, match="Unsupported file type '.xls'"):
            loader.load_return_series(path)
