"""Allow ``python -m burnrate``."""

import sys

from burnrate.app import main

sys.exit(main())
