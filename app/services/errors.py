# app/services/errors.py
"""
Expected, operator-facing failures of check-in and checkout.
Raised by the lifecycle manager before any state is touched and turned into
4xx responses by the handler registered in app.main.
"""


class ParkingError(Exception):
    """Base for every recoverable front-desk error."""
    status_code = 400
    error = "parking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "detail": self.message}


class ValidationError(ParkingError):
    status_code = 422
    error = "validation_error"

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field, "reason": self.reason}


class AlreadyActiveError(ParkingError):
    status_code = 409
    error = "already_active"

    def __init__(self, vehicle_number: str):
        super().__init__(
            f"{vehicle_number} is already parked and has not checked out yet. "
            "Please check out the vehicle first before checking in again."
        )
        self.vehicle_number = vehicle_number

    def to_dict(self) -> dict:
        return {**super().to_dict(), "vehicleNumber": self.vehicle_number}


class NotFoundError(ParkingError):
    status_code = 404
    error = "not_found"

    def __init__(self, record_id: str):
        super().__init__(f"No parking record with id {record_id}")
        self.record_id = record_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "id": self.record_id}


class AlreadyCheckedOutError(ParkingError):
    status_code = 409
    error = "already_checked_out"

    def __init__(self, record_id: str):
        super().__init__(f"Parking record {record_id} is already checked out")
        self.record_id = record_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "id": self.record_id}
