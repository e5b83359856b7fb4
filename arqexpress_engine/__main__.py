"""Allow running as: python -m arqexpress_engine"""

import sys

from arqexpress_engine.main import main

if __name__ == "__main__":
    sys.exit(main())
