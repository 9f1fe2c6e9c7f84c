# Parking front desk — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle_record import VehicleRecord, VehicleType, RecordStatus   # noqa
