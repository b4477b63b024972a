"""Entry point for running the watcher as a module.

Usage: python -m nightshield
"""

import sys

from nightshield.cli import main

if __name__ == "__main__":
    sys.exit(main())
