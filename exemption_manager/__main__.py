"""Allow ``python -m exemption_manager``."""

import sys

from exemption_manager.cli import main

sys.exit(main())
