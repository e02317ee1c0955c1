"""
Entry point for running Canal as a module.

Usage:
    python -m canal render INPUT OUTPUT --effect blur:amount=4
"""

import sys

from canal.main import main

if __name__ == "__main__":
    sys.exit(main())
