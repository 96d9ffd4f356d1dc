"""Allow ``python -m lantern``."""

import sys

from .cli.main import main

sys.exit(main())
