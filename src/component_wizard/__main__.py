"""Invoked as: python -m component_wizard"""

import sys

from component_wizard.cli import main

if __name__ == "__main__":
    sys.exit(main())
