"""Allow ``python -m cosmos_probe``."""

import sys

from cosmos_probe.app import main

if __name__ == "__main__":
    sys.exit(main())
