"""Allow ``python -m pollenflug``."""

import sys

from pollenflug.cli import main

sys.exit(main())
