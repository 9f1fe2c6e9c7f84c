# app/services/charge_calculator.py
"""
Parking charge policy.
  ≤ 12h        → flat 10
  > 12h        → 20 per started 24h block (ceil(hours / 24) × 20)
The jump from 10 to 20 just past 12h is intentional tiering.

Checkout and the live estimate on the active list both go through
calculate_charge(), so the displayed estimate always equals the charge that
gets fixed at checkout.
"""

import math
from datetime import datetime
from typing import Optional

from app.utils.time_utils import as_utc

FLAT_RATE_HOURS = 12
FLAT_CHARGE = 10
DAILY_BLOCK_HOURS = 24
DAILY_CHARGE = 20

SECONDS_PER_HOUR = 3600


def calculate_charge(duration_hours: float) -> int:
    if duration_hours < 0:
        raise ValueError(f"duration_hours must be non-negative, got {duration_hours}")
    if duration_hours <= FLAT_RATE_HOURS:
        return FLAT_CHARGE
    days = math.ceil(duration_hours / DAILY_BLOCK_HOURS)
    return days * DAILY_CHARGE


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Hours from start to end, clamped at zero for clock skew."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0.0, seconds / SECONDS_PER_HOUR)


def estimate_charge(record, now: datetime) -> int:
    """Charge if the vehicle were checked out at `now`; the fixed charge once completed."""
    if record.charge is not None:
        return record.charge
    return calculate_charge(elapsed_hours(record.check_in_time, now))


def format_elapsed(hours: Optional[float]) -> str:
    """'45 min' under an hour, otherwise '5h 3m'."""
    total_minutes = int(round((hours or 0) * SECONDS_PER_HOUR)) // 60
    h, m = divmod(total_minutes, 60)
    if h == 0:
        return f"{m} min"
    return f"{h}h {m}m"
