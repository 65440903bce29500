#!/usr/bin/env python3
"""Preview a Budget Way allocation from a scenario JSON file."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_way.cli import main


if __name__ == '__main__':
    raise SystemExit(main())
