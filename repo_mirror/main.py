"""
Main entry point for the repository mirroring tool.
Allows running it with ``python -m repo_mirror.main``.
"""

import sys

from repo_mirror.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
