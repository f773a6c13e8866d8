"""Allow ``python -m taskloop``."""

import sys

from taskloop.cli import main

sys.exit(main())
