"""Portfolio value returned by a single target-return solve."""

from dataclasses import dataclass
from typing import Tuple, List, Optional

import numpy as np
import pandas as pd


@dataclass(frozen=True, eq=False)
class Portfolio:
    """
    Minimum-variance portfolio for one target return.

    Attributes:
        symbols: Security symbols, aligned with weights
        weights: Weight per security (sums to 1, each >= 0)
        target_return: Requested target return
        expected_return: Achieved return mu^T * w
        variance: Solver-reported portfolio variance w^T * Sigma * w
    """

    symbols: Tuple[str, ...]
    weights: np.ndarray
    target_return: Optional[float]
    expected_return: float
    variance: float

    @property
    def std_dev(self) -> float:
        return float(np.sqrt(max(self.variance, 0.0)))

    def as_series(self) -> pd.Series:
        """Symbol -> weight mapping."""
        return pd.Series(self.weights, index=pd.Index(self.symbols, name='symbol'), name='weight')

    def format_weights(self, decimals: int = 2) -> List[str]:
        """Human-readable weight lines, e.g. '  AAPL:    20.43%'."""
        width = max(len(s) for s in self.symbols)
        return [
            f"  {symbol + ':':<{width + 1}} {weight * 100:>8.{decimals}f}%"
            for symbol, weight in zip(self.symbols, self.weights)
        ]

    def __repr__(self) -> str:
        weights = ", ".join(
            f"{s}={w:.4f}" for s, w in zip(self.symbols, self.weights)
        )
        return (
            f"Portfolio({weights}; return={self.expected_return:.6f}, "
            f"variance={self.variance:.6f})"
        )
