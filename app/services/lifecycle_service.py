# app/services/lifecycle_service.py
"""
Vehicle lifecycle: check-in → active → checkout → completed.

Rules enforced here:
  - one active record per normalized plate (history may repeat the plate)
  - checkout happens once; a second attempt fails with AlreadyCheckedOutError
  - check_out_time / duration_hours / charge are written together in a single
    UPDATE, so a record is never half checked out

Mutations run under one lock per manager; the partial unique index and the
conditional UPDATE carry the same guarantees across processes.
Reads take no lock and never mutate.
"""

import threading
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.vehicle_record import RecordStatus, VehicleRecord, new_record_id
from app.services.charge_calculator import calculate_charge, elapsed_hours
from app.services.errors import (
    AlreadyActiveError,
    AlreadyCheckedOutError,
    NotFoundError,
    ValidationError,
)
from app.services.validators import (
    is_valid_phone_number,
    is_valid_plate_number,
    normalize_plate_number,
    parse_vehicle_type,
)
from app.utils.logger import get_logger
from app.utils.time_utils import Clock, as_utc, day_window, local_date, utc_now

logger = get_logger(__name__)


class VehicleLifecycleManager:
    def __init__(self, clock: Clock = utc_now, tz_name: Optional[str] = None):
        self.clock = clock
        self.tz_name = tz_name
        self._lock = threading.Lock()

    # ── Mutations ─────────────────────────────────────────────────────────

    def check_in(self, db: Session, vehicle_number: str, vehicle_type, owner_name: str,
                 phone_number: str) -> VehicleRecord:
        """
        Open a parking session.
        Raises ValidationError (naming the field) or AlreadyActiveError;
        nothing is written in either case.
        """
        if not is_valid_plate_number(vehicle_number):
            raise ValidationError("vehicleNumber", "expected format like MH 12 AB 1234")
        plate = normalize_plate_number(vehicle_number)

        parsed_type = parse_vehicle_type(vehicle_type)
        if parsed_type is None:
            raise ValidationError("vehicleType", "must be one of Bike, Car, SUV, Truck")

        name = (owner_name or "").strip()
        if not name:
            raise ValidationError("ownerName", "must not be empty")

        if not is_valid_phone_number(phone_number):
            raise ValidationError("phoneNumber", "10 digits, starting with 6-9")

        with self._lock:
            if self.find_active_by_plate(db, plate) is not None:
                logger.warning(f"[CHECKIN] Refused {plate}: already parked")
                raise AlreadyActiveError(plate)

            record = VehicleRecord(
                id=new_record_id(),
                vehicle_number=plate,
                vehicle_type=parsed_type,
                owner_name=name,
                phone_number=phone_number,
                check_in_time=self.clock(),
                status=RecordStatus.ACTIVE,
            )
            db.add(record)
            try:
                db.commit()
            except IntegrityError:
                # Another process got there between our lookup and commit
                db.rollback()
                logger.warning(f"[CHECKIN] Refused {plate}: active session created concurrently")
                raise AlreadyActiveError(plate)
            db.refresh(record)

        logger.info(f"[CHECKIN] {plate} ({parsed_type.value}) | id={record.id} | owner={name}")
        return record

    def check_out(self, db: Session, record_id: str) -> VehicleRecord:
        """
        Close a parking session and fix its charge.
        Raises NotFoundError or AlreadyCheckedOutError; not idempotent.
        """
        with self._lock:
            record = db.get(VehicleRecord, record_id)
            if record is None:
                raise NotFoundError(record_id)
            if record.status == RecordStatus.COMPLETED:
                logger.warning(f"[CHECKOUT] Refused {record.vehicle_number}: {record_id} already checked out")
                raise AlreadyCheckedOutError(record_id)

            check_in_time = as_utc(record.check_in_time)
            check_out_time = max(self.clock(), check_in_time)
            duration = elapsed_hours(check_in_time, check_out_time)
            charge = calculate_charge(duration)

            updated = (
                db.query(VehicleRecord)
                .filter(VehicleRecord.id == record_id,
                        VehicleRecord.status == RecordStatus.ACTIVE)
                .update(
                    {
                        VehicleRecord.check_out_time: check_out_time,
                        VehicleRecord.duration_hours: duration,
                        VehicleRecord.charge: charge,
                        VehicleRecord.status: RecordStatus.COMPLETED,
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                # Completed by another process after our read
                db.rollback()
                raise AlreadyCheckedOutError(record_id)
            db.commit()
            db.refresh(record)

        logger.info(
            f"[CHECKOUT] {record.vehicle_number} | id={record_id} | "
            f"{duration:.2f}h | charge={charge}"
        )
        return record

    # ── Reads ─────────────────────────────────────────────────────────────

    def get(self, db: Session, record_id: str) -> VehicleRecord:
        record = db.get(VehicleRecord, record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def find_active_by_plate(self, db: Session, vehicle_number: str) -> Optional[VehicleRecord]:
        plate = normalize_plate_number(vehicle_number)
        return (
            db.query(VehicleRecord)
            .filter(VehicleRecord.vehicle_number == plate,
                    VehicleRecord.status == RecordStatus.ACTIVE)
            .first()
        )

    def list_all(self, db: Session) -> list[VehicleRecord]:
        return db.query(VehicleRecord).order_by(VehicleRecord.check_in_time.desc()).all()

    def list_active(self, db: Session) -> list[VehicleRecord]:
        return (
            db.query(VehicleRecord)
            .filter(VehicleRecord.status == RecordStatus.ACTIVE)
            .order_by(VehicleRecord.check_in_time.desc())
            .all()
        )

    def list_completed(self, db: Session, since: Optional[datetime] = None,
                       until: Optional[datetime] = None) -> list[VehicleRecord]:
        """Completed records with since ≤ check_out_time < until."""
        q = db.query(VehicleRecord).filter(VehicleRecord.status == RecordStatus.COMPLETED)
        if since is not None:
            q = q.filter(VehicleRecord.check_out_time >= since)
        if until is not None:
            q = q.filter(VehicleRecord.check_out_time < until)
        return q.order_by(VehicleRecord.check_out_time.desc()).all()

    def list_checked_in(self, db: Session, since: Optional[datetime] = None,
                        until: Optional[datetime] = None) -> list[VehicleRecord]:
        """Any-status records with since ≤ check_in_time < until."""
        q = db.query(VehicleRecord)
        if since is not None:
            q = q.filter(VehicleRecord.check_in_time >= since)
        if until is not None:
            q = q.filter(VehicleRecord.check_in_time < until)
        return q.order_by(VehicleRecord.check_in_time.desc()).all()

    def today_window(self) -> Tuple[datetime, datetime]:
        return day_window(local_date(self.clock(), self.tz_name), self.tz_name)

    def list_today(self, db: Session) -> list[VehicleRecord]:
        return self.list_checked_in(db, *self.today_window())

    def list_completed_today(self, db: Session) -> list[VehicleRecord]:
        return self.list_completed(db, *self.today_window())

    def total_revenue(self, db: Session, since: Optional[datetime] = None,
                      until: Optional[datetime] = None) -> int:
        q = db.query(func.coalesce(func.sum(VehicleRecord.charge), 0)).filter(
            VehicleRecord.status == RecordStatus.COMPLETED
        )
        if since is not None:
            q = q.filter(VehicleRecord.check_out_time >= since)
        if until is not None:
            q = q.filter(VehicleRecord.check_out_time < until)
        return int(q.scalar() or 0)

    def count_completed(self, db: Session) -> int:
        return (
            db.query(func.count(VehicleRecord.id))
            .filter(VehicleRecord.status == RecordStatus.COMPLETED)
            .scalar()
        )


lifecycle_manager = VehicleLifecycleManager()


def get_lifecycle_manager() -> VehicleLifecycleManager:
    """FastAPI dependency: the process-wide manager (overridden in tests)."""
    return lifecycle_manager
