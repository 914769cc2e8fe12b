"""
CLI entry point for minimum-variance portfolio analysis.

Usage:
    python run_cli.py --file returns.csv --target 0.5
    python run_cli.py --file returns.csv --frontier --step 0.5
    python run_cli.py --sample --frontier

For installed package, use: mvf-analyze
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from minvar_frontier.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
