"""Command line entry point for pgconvert."""
import sys

from pgconvert.cli import main

if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
