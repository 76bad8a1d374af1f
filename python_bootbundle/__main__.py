"""Entry point for ``python -m python_bootbundle`` (used by the shell stub)."""

import sys

from python_bootbundle.cli import main


if __name__ == "__main__":
    sys.exit(main())
