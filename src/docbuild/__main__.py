"""Allow ``python -m docbuild``."""

import sys

from docbuild.cli import main

if __name__ == "__main__":
    sys.exit(main())
