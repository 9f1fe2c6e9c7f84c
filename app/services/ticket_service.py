# app/services/ticket_service.py
"""
Parking ticket payload: the JSON a printed QR code carries.
Building the image and reading it back from a camera happen client-side;
this module only produces and parses the payload.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.services.errors import ValidationError
from app.services.validators import normalize_plate_number
from app.utils.time_utils import as_utc


@dataclass
class TicketPayload:
    vehicle_number: str
    id: Optional[str] = None
    vehicle_type: Optional[str] = None
    owner_name: Optional[str] = None
    phone_number: Optional[str] = None
    check_in_time: Optional[datetime] = None


def build_ticket_payload(record) -> dict:
    return {
        "vehicleNumber": record.vehicle_number,
        "vehicleType": record.vehicle_type.value,
        "ownerName": record.owner_name,
        "phoneNumber": record.phone_number,
        "checkInTime": as_utc(record.check_in_time).isoformat(),
        "id": record.id,
    }


def encode_ticket_payload(record) -> str:
    return json.dumps(build_ticket_payload(record), separators=(",", ":"))


def parse_ticket_payload(raw: str) -> TicketPayload:
    """Parse a scanned ticket. Only vehicleNumber is required, as on the scanner."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError("payload", "not a parking ticket (invalid JSON)")
    if not isinstance(data, dict) or not data.get("vehicleNumber"):
        raise ValidationError("payload", "not a parking ticket (no vehicleNumber)")

    check_in_time = None
    if data.get("checkInTime"):
        try:
            check_in_time = as_utc(datetime.fromisoformat(str(data["checkInTime"]).replace("Z", "+00:00")))
        except ValueError:
            raise ValidationError("payload", "checkInTime is not ISO-8601")

    return TicketPayload(
        vehicle_number=normalize_plate_number(str(data["vehicleNumber"])),
        id=data.get("id"),
        vehicle_type=data.get("vehicleType"),
        owner_name=data.get("ownerName"),
        phone_number=data.get("phoneNumber"),
        check_in_time=check_in_time,
    )
