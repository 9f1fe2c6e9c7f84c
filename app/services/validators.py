# app/services/validators.py
"""
Field format checks for check-in.
Standalone so the HTTP layer can offer inline feedback before submitting.
"""

import re
from typing import Optional

from app.models.vehicle_record import VehicleType

# 2 letters, 1-2 digits, 1-2 letters, 3-4 digits, e.g. MH12AB1234
PLATE_PATTERN = re.compile(r"[A-Z]{2}[0-9]{1,2}[A-Z]{1,2}[0-9]{3,4}")
# 10 digits, mobile prefix 6-9
PHONE_PATTERN = re.compile(r"[6-9][0-9]{9}")
_WHITESPACE = re.compile(r"\s+")


def normalize_plate_number(value: str) -> str:
    """'mh 12 ab 1234' -> 'MH12AB1234'"""
    return _WHITESPACE.sub("", value or "").upper()


def is_valid_plate_number(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return PLATE_PATTERN.fullmatch(normalize_plate_number(value)) is not None


def is_valid_phone_number(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return PHONE_PATTERN.fullmatch(value) is not None


def parse_vehicle_type(value) -> Optional[VehicleType]:
    """Exact match against the closed set; None when not one of them."""
    if isinstance(value, VehicleType):
        return value
    try:
        return VehicleType(value)
    except ValueError:
        return None
