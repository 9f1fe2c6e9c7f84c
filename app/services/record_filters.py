# app/services/record_filters.py
"""
Filter and sort helpers for the history and "today" views.
They work on a list already fetched from the lifecycle manager and always
return a new list; records are never modified.
"""

import enum
from datetime import datetime
from typing import Iterable, Optional

from app.models.vehicle_record import RecordStatus, VehicleType
from app.utils.time_utils import as_utc, utc_now

_EPOCH = datetime.min


class SortOrder(str, enum.Enum):
    TIME = "time"           # newest first
    CHARGE = "charge"       # highest first
    DURATION = "duration"   # longest first
    VEHICLE = "vehicle"     # plate A→Z


def matches_search(record, query: str) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    return (
        q in (record.vehicle_number or "").lower()
        or q in (record.owner_name or "").lower()
        or q in (record.phone_number or "").lower()
    )


def filter_records(
    records: Iterable,
    vehicle_type: Optional[VehicleType] = None,
    search: Optional[str] = None,
    status: Optional[RecordStatus] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> list:
    """
    All given predicates must hold. since/until bound the checkout time;
    a still-active record is judged by `now` instead.
    """
    result = list(records)
    if search:
        result = [r for r in result if matches_search(r, search)]
    if vehicle_type is not None:
        result = [r for r in result if r.vehicle_type == vehicle_type]
    if status is not None:
        result = [r for r in result if r.status == status]
    if since is not None or until is not None:
        now = now or utc_now()

        def _out(r):
            return as_utc(r.check_out_time) if r.check_out_time else as_utc(now)

        if since is not None:
            result = [r for r in result if _out(r) >= as_utc(since)]
        if until is not None:
            result = [r for r in result if _out(r) < as_utc(until)]
    return result


def sort_records(records: Iterable, order: SortOrder = SortOrder.TIME,
                 time_field: str = "check_out_time") -> list:
    """
    time_field picks the timestamp for SortOrder.TIME ("check_in_time" for
    the check-in views). Missing times sort last, missing charge/duration as 0.
    """
    result = list(records)
    if order == SortOrder.CHARGE:
        result.sort(key=lambda r: r.charge or 0, reverse=True)
    elif order == SortOrder.DURATION:
        result.sort(key=lambda r: r.duration_hours or 0, reverse=True)
    elif order == SortOrder.VEHICLE:
        result.sort(key=lambda r: r.vehicle_number)
    else:
        def _time_key(r):
            value = getattr(r, time_field)
            return (value is not None, as_utc(value) if value is not None else _EPOCH)
        result.sort(key=_time_key, reverse=True)
    return result
