"""
Baseline Navigator - Main Entry Point

Example usage:
    python main.py analyze path/to/project
    python main.py --config config/config.yaml recommend has --language css
"""

import sys

from baseline_navigator.cli import main


if __name__ == "__main__":
    sys.exit(main())
