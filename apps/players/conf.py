# apps/players/conf.py
# ================================================================================
"""Constants for the 'players' app."""

from __future__ import annotations

from typing import Final

# ─── Query Bounds ─────────────────────────────────────────────────────────────
MAX_MMR_DAYS: Final[int] = 365
