"""dssdeploy CLI entry point — python -m dssdeploy"""

from __future__ import annotations

import sys

from dssdeploy.cli import main

if __name__ == "__main__":
    sys.exit(main())
