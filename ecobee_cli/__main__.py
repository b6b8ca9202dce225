"""Allow running the client with ``python -m ecobee_cli``."""

import sys

from .cli import main

sys.exit(main())
