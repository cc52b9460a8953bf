"""Entry point for ``python -m sqlite_shell``."""

import sys

from sqlite_shell.cli import main

if __name__ == "__main__":
    sys.exit(main())
