# app/models/vehicle_record.py
"""
One parking session: created by check-in, completed exactly once by checkout.
A partial unique index keeps a single active session per plate while letting
the same plate build up any number of completed sessions.
"""

import enum
import uuid

from sqlalchemy import Column, Enum, Float, Index, Integer, String, text
from app.database import Base, UTCDateTime


class VehicleType(str, enum.Enum):
    BIKE = "Bike"
    CAR = "Car"
    SUV = "SUV"
    TRUCK = "Truck"


class RecordStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def new_record_id() -> str:
    return uuid.uuid4().hex


class VehicleRecord(Base):
    __tablename__ = "vehicle_records"

    id = Column(String(32), primary_key=True, default=new_record_id)
    vehicle_number = Column(String(20), nullable=False, index=True)
    vehicle_type = Column(
        Enum(VehicleType, name="vehicle_type", values_callable=_enum_values),
        nullable=False,
    )
    owner_name = Column(String(200), nullable=False)
    phone_number = Column(String(10), nullable=False)
    check_in_time = Column(UTCDateTime, nullable=False, index=True)
    # Set together at checkout, NULL together while active
    check_out_time = Column(UTCDateTime, index=True)
    duration_hours = Column(Float)
    charge = Column(Integer)
    status = Column(
        Enum(RecordStatus, name="record_status", values_callable=_enum_values),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )

    __table_args__ = (
        Index(
            "uq_vehicle_records_active_plate",
            "vehicle_number",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    def __repr__(self):
        return f"<VehicleRecord {self.id} plate={self.vehicle_number} status={self.status.value if self.status else None}>"
