# app/routers/vehicles.py
"""
Front-desk endpoints: check-in, checkout, active list, history and revenue.
Domain errors (ParkingError) propagate to the handler in app.main, which
turns them into 404 / 409 / 422 responses.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.vehicle_record import RecordStatus, VehicleType
from app.schemas.vehicle_record import (
    ActiveVehicleOut,
    FieldCheckOut,
    RevenueOut,
    TicketOut,
    TicketScan,
    VehicleCheckIn,
    VehicleRecordOut,
)
from app.services.charge_calculator import elapsed_hours, estimate_charge, format_elapsed
from app.services.errors import NotFoundError
from app.services.lifecycle_service import VehicleLifecycleManager, get_lifecycle_manager
from app.services.record_filters import SortOrder, filter_records, sort_records
from app.services.ticket_service import build_ticket_payload, encode_ticket_payload, parse_ticket_payload
from app.services.validators import (
    is_valid_phone_number,
    is_valid_plate_number,
    normalize_plate_number,
)
from app.utils.time_utils import date_range_window

router = APIRouter()


def _to_active_out(record, now) -> ActiveVehicleOut:
    hours = elapsed_hours(record.check_in_time, now)
    return ActiveVehicleOut(
        **VehicleRecordOut.model_validate(record).model_dump(),
        elapsed_hours=round(hours, 4),
        elapsed=format_elapsed(hours),
        current_charge=estimate_charge(record, now),
    )


# ── Mutations ────────────────────────────────────────────────────────────────

@router.post("/vehicles", response_model=VehicleRecordOut, response_model_exclude_none=True,
             status_code=status.HTTP_201_CREATED, summary="Check a vehicle in")
def check_in_vehicle(body: VehicleCheckIn, db: Session = Depends(get_db),
                     manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    """422 names the invalid field; 409 if the plate is already parked."""
    return manager.check_in(
        db,
        vehicle_number=body.vehicle_number,
        vehicle_type=body.vehicle_type,
        owner_name=body.owner_name,
        phone_number=body.phone_number,
    )


@router.post("/vehicles/{record_id}/checkout", response_model=VehicleRecordOut,
             response_model_exclude_none=True, summary="Check a vehicle out and fix its charge")
def check_out_vehicle(record_id: str, db: Session = Depends(get_db),
                      manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    """404 for an unknown id, 409 if it was already checked out."""
    return manager.check_out(db, record_id)


# ── Lists ────────────────────────────────────────────────────────────────────

@router.get("/vehicles", response_model=list[VehicleRecordOut], response_model_exclude_none=True,
            summary="Parking history, all records")
def list_vehicles(
    vehicle_type: Optional[VehicleType] = None,
    record_status: Optional[RecordStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: SortOrder = SortOrder.TIME,
    db: Session = Depends(get_db),
    manager: VehicleLifecycleManager = Depends(get_lifecycle_manager),
):
    records = filter_records(manager.list_all(db), vehicle_type=vehicle_type,
                             search=search, status=record_status)
    return sort_records(records, sort, time_field="check_in_time")


@router.get("/vehicles/active", response_model=list[ActiveVehicleOut], response_model_exclude_none=True,
            summary="Parked vehicles with live charge")
def list_active_vehicles(
    vehicle_type: Optional[VehicleType] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    manager: VehicleLifecycleManager = Depends(get_lifecycle_manager),
):
    """currentCharge is what checkout would charge right now."""
    now = manager.clock()
    records = filter_records(manager.list_active(db), vehicle_type=vehicle_type, search=search)
    return [_to_active_out(r, now) for r in records]


@router.get("/vehicles/today", response_model=list[VehicleRecordOut], response_model_exclude_none=True,
            summary="Vehicles checked in today")
def list_checked_in_today(
    vehicle_type: Optional[VehicleType] = None,
    record_status: Optional[RecordStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: SortOrder = SortOrder.TIME,
    db: Session = Depends(get_db),
    manager: VehicleLifecycleManager = Depends(get_lifecycle_manager),
):
    records = filter_records(manager.list_today(db), vehicle_type=vehicle_type,
                             search=search, status=record_status)
    return sort_records(records, sort, time_field="check_in_time")


@router.get("/vehicles/completed", response_model=list[VehicleRecordOut], response_model_exclude_none=True,
            summary="Completed sessions, optional checkout date range")
def list_completed(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    vehicle_type: Optional[VehicleType] = None,
    search: Optional[str] = None,
    sort: SortOrder = SortOrder.TIME,
    db: Session = Depends(get_db),
    manager: VehicleLifecycleManager = Depends(get_lifecycle_manager),
):
    """date_from / date_to are whole local days, both inclusive."""
    since, until = date_range_window(date_from, date_to, manager.tz_name)
    records = filter_records(manager.list_completed(db, since, until),
                             vehicle_type=vehicle_type, search=search)
    return sort_records(records, sort)


@router.get("/vehicles/completed-today", response_model=list[VehicleRecordOut],
            response_model_exclude_none=True, summary="Vehicles checked out today")
def list_completed_today(
    vehicle_type: Optional[VehicleType] = None,
    search: Optional[str] = None,
    sort: SortOrder = SortOrder.TIME,
    db: Session = Depends(get_db),
    manager: VehicleLifecycleManager = Depends(get_lifecycle_manager),
):
    records = filter_records(manager.list_completed_today(db), vehicle_type=vehicle_type, search=search)
    return sort_records(records, sort)


@router.get("/vehicles/total-revenue", response_model=RevenueOut, summary="Revenue from all completed sessions")
def get_total_revenue(db: Session = Depends(get_db),
                      manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    return RevenueOut(total_revenue=manager.total_revenue(db),
                      completed_count=manager.count_completed(db))


# ── Lookup / tickets ─────────────────────────────────────────────────────────

@router.get("/vehicles/lookup/{plate}", response_model=ActiveVehicleOut, response_model_exclude_none=True,
            summary="Find the active session for a plate")
def lookup_active_vehicle(plate: str, db: Session = Depends(get_db),
                          manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    record = manager.find_active_by_plate(db, plate)
    if record is None:
        raise NotFoundError(normalize_plate_number(plate))
    return _to_active_out(record, manager.clock())


@router.post("/vehicles/scan", response_model=ActiveVehicleOut, response_model_exclude_none=True,
             summary="Resolve a scanned parking ticket to its active session")
def resolve_scanned_ticket(body: TicketScan, db: Session = Depends(get_db),
                           manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    """The operator confirms the returned session, then calls checkout with its id."""
    ticket = parse_ticket_payload(body.payload)
    record = manager.find_active_by_plate(db, ticket.vehicle_number)
    if record is None:
        raise NotFoundError(ticket.id or ticket.vehicle_number)
    return _to_active_out(record, manager.clock())


@router.get("/vehicles/{record_id}", response_model=VehicleRecordOut, response_model_exclude_none=True,
            summary="Single parking record")
def get_vehicle(record_id: str, db: Session = Depends(get_db),
                manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    return manager.get(db, record_id)


@router.get("/vehicles/{record_id}/ticket", response_model=TicketOut, summary="QR ticket payload for a record")
def get_ticket(record_id: str, db: Session = Depends(get_db),
               manager: VehicleLifecycleManager = Depends(get_lifecycle_manager)):
    record = manager.get(db, record_id)
    return TicketOut(payload=build_ticket_payload(record), encoded=encode_ticket_payload(record))


# ── Inline field checks ──────────────────────────────────────────────────────

@router.get("/validate/plate", response_model=FieldCheckOut, summary="Check a plate number format")
def validate_plate(value: str):
    return FieldCheckOut(value=value, normalized=normalize_plate_number(value),
                         valid=is_valid_plate_number(value))


@router.get("/validate/phone", response_model=FieldCheckOut, summary="Check a phone number format")
def validate_phone(value: str):
    return FieldCheckOut(value=value, normalized=value, valid=is_valid_phone_number(value))
