"""Allow ``python -m py_ossim``."""

import sys

from py_ossim.cli import main

sys.exit(main())
