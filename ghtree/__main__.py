"""
ghtree entrypoint.

Run with: python3 -m ghtree <owner> <name> [options]
"""
import sys

from ghtree.cli.ghtreectl import main


if __name__ == "__main__":
    sys.exit(main())
