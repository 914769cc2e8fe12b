"""
Long-Only Minimum-Variance Analysis
6 Stocks: HD, IBM, INTC, JNJ, JPM, KO
Monthly expected returns and covariance

Traces the frontier in tenth-of-a-percent steps and saves the weights,
the frontier table and the curve to output/.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

# Get the project root directory (parent of examples/)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from minvar_frontier import PortfolioOptimizer, InfeasibleError
from minvar_frontier.visualization import plot_frontier, plot_portfolio_weights

OUTPUT_DIR = PROJECT_ROOT / 'output'
OUTPUT_DIR.mkdir(exist_ok=True)

# === Monthly moments for 6 stocks ===
asset_names = ['HD', 'IBM', 'INTC', 'JNJ', 'JPM', 'KO']

expected_returns = [0.015392, -0.001335, 0.013972, 0.008750, 0.014342, 0.006737]

cov_matrix = [
    [0.00257569, 0.00144976, 0.00059154, 0.00051405, 0.00117486, 0.00061042],
    [0.00144976, 0.00420389, 0.00153980, 0.00077403, 0.00169090, 0.00034819],
    [0.00059154, 0.00153980, 0.00382510, 0.00072826, 0.00104477, 0.00048172],
    [0.00051405, 0.00077403, 0.00072826, 0.00159242, 0.00084915, 0.00082336],
    [0.00117486, 0.00169090, 0.00104477, 0.00084915, 0.00322618, 0.00039425],
    [0.00061042, 0.00034819, 0.00048172, 0.00082336, 0.00039425, 0.00147278]
]

target_return = 0.012  # 1.2% monthly


def main():
    optimizer = PortfolioOptimizer.from_moments(expected_returns, cov_matrix, asset_names)
    print(optimizer.summary_report(target_return))

    try:
        optimizer.optimize_for_target_return(0.02)
    except InfeasibleError as e:
        print(f"\n2.00% is out of reach: {e}")

    # === Frontier ===
    frontier = optimizer.efficient_frontier(step_pct=0.1)
    print(f"\nFrontier: {len(frontier)} points, {len(frontier.gaps)} skipped")
    print(f"{'Target':>10} {'Variance':>12} {'Std Dev':>10}")
    for point in frontier.points:
        print(f"{point.target_return*100:>9.2f}% {point.variance:>12.8f} {point.std_dev*100:>9.4f}%")

    frontier.as_frame().to_csv(OUTPUT_DIR / 'six_stocks_frontier.csv', index=False)

    portfolio = optimizer.optimize_for_target_return(target_return)
    fig = plot_frontier(frontier, optimizer.stats, highlight=portfolio,
                        save_path=str(OUTPUT_DIR / 'six_stocks_frontier.png'))
    plt.close(fig)
    fig = plot_portfolio_weights(portfolio, save_path=str(OUTPUT_DIR / 'six_stocks_weights.png'))
    plt.close(fig)

    print(f"\nSaved output to {OUTPUT_DIR}")


if __name__ == '__main__':
    main()
