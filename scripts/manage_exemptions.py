#!/usr/bin/env python3
"""Standalone CLI script for exemption reconciliation.

Equivalent to the ``exemption-manager`` console script, for running from a
checkout without installing the package (CI pipelines, automation
accounts). See ``exemption_manager.cli`` for options and exit codes.

Usage:
    python scripts/manage_exemptions.py --management-group contoso-root --list-only
"""

import sys

# Add the parent directory to the path for imports
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from exemption_manager.cli import main

if __name__ == "__main__":
    sys.exit(main())
