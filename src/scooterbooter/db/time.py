# src/scooterbooter/db/time.py
"""Time utilities for stored records."""

import time

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Return the current UTC time in epoch milliseconds."""
    return int(time.time() * 1000)
