from __future__ import annotations

import sys

from dieforms.cli import main

# Same as `python -m dieforms`, e.g.:
#   python main.py input/logo.png --fade 3 --thickness 0.5
if __name__ == "__main__":
    sys.exit(main())
