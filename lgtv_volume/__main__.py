"""Entry point for ``python -m lgtv_volume``."""

import sys

from .cli import main

sys.exit(main())
