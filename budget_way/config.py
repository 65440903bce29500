"""Configuration management for the Budget Way engine.

This module centralizes the thresholds and defaults the engine relies on,
with environment variable overrides for each of them.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

# Step and milestone catalogues live next to this file by default
SETTINGS_DIR = Path(
    os.getenv("BUDGETWAY_SETTINGS_DIR", Path(__file__).parent / "settings")
).resolve()

# Aggregate essential-tier progress (%) below which essentials count as underfunded.
# The essentials step also needs overall progress at or above this value.
ESSENTIALS_THRESHOLD = Decimal(os.getenv("BUDGETWAY_ESSENTIALS_THRESHOLD", "80"))

# Target used for the starter stash step when no envelope exists yet
STARTER_STASH_TARGET = Decimal(os.getenv("BUDGETWAY_STARTER_STASH_TARGET", "1000"))

# Overall progress (%) below which the "fill envelopes" row stays visible
ENVELOPE_ROW_THRESHOLD = Decimal(os.getenv("BUDGETWAY_ENVELOPE_ROW_THRESHOLD", "95"))
