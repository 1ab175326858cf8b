"""
Main entry point for running sealsync as a module.

Usage:
    python -m sealsync <command> [options]
"""

from .cli import main
import sys

if __name__ == "__main__":
    sys.exit(main())
