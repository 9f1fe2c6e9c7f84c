# app/schemas/vehicle_record.py
"""Wire shapes for parking records. Field names on the wire are camelCase."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from app.models.vehicle_record import RecordStatus, VehicleType


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class VehicleCheckIn(CamelModel):
    # Plain strings: format checks belong to the lifecycle manager so the
    # error names the offending field the same way for every caller
    vehicle_number: str
    vehicle_type: str
    owner_name: str
    phone_number: str


class VehicleRecordOut(CamelModel):
    id: str
    vehicle_number: str
    vehicle_type: VehicleType
    owner_name: str
    phone_number: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    duration_hours: Optional[float] = None
    charge: Optional[int] = None
    status: RecordStatus


class ActiveVehicleOut(VehicleRecordOut):
    elapsed_hours: float
    elapsed: str             # "45 min" | "5h 3m"
    current_charge: int      # charge if checked out now


class RevenueOut(CamelModel):
    total_revenue: int
    completed_count: int


class TicketOut(CamelModel):
    payload: dict
    encoded: str


class TicketScan(CamelModel):
    payload: str


class FieldCheckOut(CamelModel):
    value: str
    normalized: str
    valid: bool


class DashboardStatsOut(CamelModel):
    date: str
    active_count: int
    checked_in_today: int
    checked_out_today: int
    today_revenue: int
    total_revenue: int
