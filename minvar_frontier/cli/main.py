"""
Main Runner Script for Minimum-Variance Portfolio Analysis
==========================================================

This script runs the workflow on a return-series table:
1. Loading returns from CSV or Excel
2. Computing expected returns and the covariance matrix
3. Solving for the minimum-variance portfolio at a target return, and/or
4. Tracing the efficient frontier across the attainable return range
5. Writing tables and plots

Usage:
    mvf-analyze --file returns.csv --target 0.5      # One target return
    mvf-analyze --file returns.csv --frontier        # Whole frontier
    mvf-analyze --file returns.xlsx --sheet Returns --frontier --step 0.5
    mvf-analyze --sample --frontier                  # Synthetic data
"""

import sys
import argparse
import logging
import traceback
from datetime import datetime
from typing import Optional, List
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from minvar_frontier.core.config import OptimizerConfig
from minvar_frontier.core.errors import PortfolioError
from minvar_frontier.core.frontier import Frontier
from minvar_frontier.core.loader import DataLoader
from minvar_frontier.core.optimizer import PortfolioOptimizer, generate_sample_returns
from minvar_frontier.core.portfolio import Portfolio
from minvar_frontier.visualization import plot_frontier, plot_portfolio_weights


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logger(
    script_name: str = "minvar_frontier",
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Sets up a logger that writes to both file and console.

    Args:
        script_name: Name of the script (used in log filename)
        log_dir: Directory for log files (default: ./logs)

    Returns:
        Configured logger instance
    """
    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    # Generate unique log filename
    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M")
    log_filename = log_dir / f"log_{script_name}_{timestamp}.txt"

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers (prevent duplicates)
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# =============================================================================
# ANALYSIS CHECKPOINTS
# =============================================================================

class AnalysisCheckpoint:
    """
    Tracks the progress of an analysis run.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.steps_completed = []
        self.start_time = datetime.now()
        self.current_step = None

    def start_step(self, step_name: str):
        """Mark a step as started."""
        self.current_step = step_name
        self.logger.info(f"[CHECKPOINT] Starting: {step_name}")

    def complete_step(self, step_name: str):
        """Mark a step as completed."""
        self.steps_completed.append(step_name)
        self.logger.info(f"[CHECKPOINT] Completed: {step_name}")

    def log_final_report(self):
        """Log final analysis report."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self.logger.info("=" * 60)
        self.logger.info("  ANALYSIS COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(f"  Steps completed: {len(self.steps_completed)}")
        self.logger.info(f"  Total time: {elapsed:.2f} seconds")
        self.logger.info("=" * 60)


# =============================================================================
# ANALYSIS FUNCTIONS
# =============================================================================

def log_asset_statistics(optimizer: PortfolioOptimizer, logger: logging.Logger):
    """Log the per-security statistics table."""
    logger.info("--- Individual Asset Statistics ---")
    logger.info(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12}")
    logger.info("-" * 40)
    for name, asset in optimizer.get_asset_stats().items():
        logger.info(f"{name:<12} {asset['mean']*100:>11.4f}% {asset['std']*100:>11.4f}%")


def log_portfolio(portfolio: Portfolio, logger: logging.Logger):
    """Log weights as percentages plus return and variance."""
    logger.info("Weights:")
    for line in portfolio.format_weights():
        logger.info(line)
    logger.info(f"Expected Return: {portfolio.expected_return*100:.4f}%")
    logger.info(f"Variance: {portfolio.variance:.6f}")
    logger.info(f"Standard Deviation: {portfolio.std_dev*100:.4f}%")


def run_target_analysis(
    optimizer: PortfolioOptimizer,
    target_return: float,
    exact: bool = False,
    output_dir: Optional[Path] = None,
    save_plots: bool = True,
    logger: Optional[logging.Logger] = None
) -> Portfolio:
    """
    Solve for the minimum-variance portfolio at one target return.

    Also checks the solver-reported variance against w^T * Sigma * w.

    Raises:
        InfeasibleError: If the target cannot be reached
    """
    logger = logger or logging.getLogger(__name__)

    logger.info(f"--- Minimum Variance Portfolio for {target_return*100:.2f}% ---")
    portfolio = optimizer.optimize_for_target_return(target_return, exact=exact)
    log_portfolio(portfolio, logger)

    check = optimizer.portfolio_variance(portfolio.weights)
    logger.info(f"Variance check (w^T * Sigma * w): {check:.6f}")

    if output_dir is not None:
        portfolio.as_series().to_csv(output_dir / "portfolio_weights.csv")
        logger.info("Saved: portfolio_weights.csv")
        if save_plots:
            fig = plot_portfolio_weights(
                portfolio, save_path=str(output_dir / "portfolio_weights.png")
            )
            plt.close(fig)
            logger.info("Saved: portfolio_weights.png")

    return portfolio


def run_frontier_analysis(
    optimizer: PortfolioOptimizer,
    step_pct: Optional[float] = None,
    max_workers: Optional[int] = None,
    exact: bool = False,
    output_dir: Optional[Path] = None,
    save_plots: bool = True,
    highlight: Optional[Portfolio] = None,
    logger: Optional[logging.Logger] = None
) -> Frontier:
    """Trace the frontier and write it as a table and a curve."""
    logger = logger or logging.getLogger(__name__)

    frontier = optimizer.efficient_frontier(
        step_pct=step_pct, exact=exact, max_workers=max_workers
    )
    logger.info(
        f"Efficient frontier calculated with {len(frontier)} points "
        f"({len(frontier.gaps)} skipped)"
    )

    if len(frontier) > 0:
        first, last = frontier.points[0], frontier.points[-1]
        logger.info(
            f"  From {first.target_return*100:.2f}% (variance {first.variance:.6f}) "
            f"to {last.target_return*100:.2f}% (variance {last.variance:.6f})"
        )

    if output_dir is not None:
        frontier.as_frame().to_csv(output_dir / "frontier.csv", index=False)
        logger.info("Saved: frontier.csv")
        if save_plots and len(frontier) > 0:
            fig = plot_frontier(
                frontier, optimizer.stats, highlight=highlight,
                save_path=str(output_dir / "frontier.png")
            )
            plt.close(fig)
            logger.info("Saved: frontier.png")

    return frontier


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Minimum-Variance Portfolio and Efficient Frontier Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mvf-analyze --file returns.csv --target 0.5
  mvf-analyze --file returns.csv --frontier --step 0.5
  mvf-analyze --file returns.xlsx --sheet Returns --target 0.5 --frontier
  mvf-analyze --sample --frontier
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--file', '-f',
        type=str,
        help='Path to CSV or Excel file with periodic returns'
    )
    source.add_argument(
        '--sample',
        action='store_true',
        help='Use synthetic sample returns'
    )
    parser.add_argument(
        '--sheet', '-s',
        type=str,
        default=None,
        help='Excel sheet name (default: first sheet)'
    )
    parser.add_argument(
        '--target', '-t',
        type=float,
        help='Target expected return as a fraction (e.g. 0.5 = 50%%)'
    )
    parser.add_argument(
        '--frontier',
        action='store_true',
        help='Trace the efficient frontier'
    )
    parser.add_argument(
        '--step',
        type=float,
        default=1.0,
        help='Frontier step in percentage points (default: 1.0)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Solve frontier points on this many threads'
    )
    parser.add_argument(
        '--exact',
        action='store_true',
        help='Require the portfolio return to equal the target'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Directory for CSV and PNG output (default: ./output)'
    )
    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Disable plot generation'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the analysis script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.target is None and not args.frontier:
        parser.error("give --target, --frontier, or both")

    output_dir = Path(args.output) if args.output else Path.cwd() / "output"
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logger("portfolio_analysis", log_dir=output_dir.parent / "logs")
    checkpoint = AnalysisCheckpoint(logger)

    try:
        config = OptimizerConfig(step_pct=args.step)

        checkpoint.start_step("Load Returns")
        if args.file:
            logger.info(f"Loading data from: {args.file}")
            stats = DataLoader(ddof=config.ddof).load_statistics(args.file, args.sheet)
            optimizer = PortfolioOptimizer(stats, config)
        else:
            logger.info("Using sample data...")
            optimizer = PortfolioOptimizer.from_returns(generate_sample_returns(4), config)
        checkpoint.complete_step("Load Returns")

        logger.info("=" * 70)
        logger.info("  MINIMUM-VARIANCE PORTFOLIO ANALYSIS")
        logger.info("=" * 70)
        logger.info(f"  Securities: {', '.join(optimizer.symbols)}")
        logger.info(f"  Periods: {optimizer.stats.n_periods}")
        logger.info("=" * 70)
        log_asset_statistics(optimizer, logger)

        portfolio = None
        if args.target is not None:
            checkpoint.start_step("Solve Target Return")
            portfolio = run_target_analysis(
                optimizer, args.target, exact=args.exact,
                output_dir=output_dir, save_plots=not args.no_plots, logger=logger
            )
            checkpoint.complete_step("Solve Target Return")

        if args.frontier:
            checkpoint.start_step("Trace Efficient Frontier")
            run_frontier_analysis(
                optimizer, step_pct=args.step, max_workers=args.workers,
                exact=args.exact, output_dir=output_dir,
                save_plots=not args.no_plots, highlight=portfolio, logger=logger
            )
            checkpoint.complete_step("Trace Efficient Frontier")

        checkpoint.log_final_report()
        logger.info("Analysis completed successfully!")
        return 0

    except PortfolioError as e:
        logger.error(f"Analysis failed: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Analysis failed: {e}")
        logger.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
