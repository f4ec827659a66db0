"""Allow running webpm as ``python -m webpm``."""

import sys

from webpm.cli import main

if __name__ == "__main__":
    sys.exit(main())
