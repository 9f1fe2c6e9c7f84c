"""Unit tests for plate / phone format checks."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.models.vehicle_record import VehicleType
from app.services.validators import (
    is_valid_phone_number,
    is_valid_plate_number,
    normalize_plate_number,
    parse_vehicle_type,
)


class TestPlateNumber:
    @pytest.mark.parametrize("plate", [
        "MH12AB1234",
        "mh 12 ab 1234",
        "  MH 12 AB 1234  ",
        "DL1C123",        # 1 digit, 1 letter, 3 digits
        "KA05MZ9999",
        "ka\t05 m 1234",
    ])
    def test_valid(self, plate):
        assert is_valid_plate_number(plate)

    @pytest.mark.parametrize("plate", [
        "MH1234",
        "",
        "M12AB1234",       # one leading letter
        "MH123AB1234",     # three digits in district code
        "MH12ABC1234",     # three series letters
        "MH12AB12",        # too few trailing digits
        "MH12AB12345",     # too many trailing digits
        "MH12AB1234X",
        "MH-12-AB-1234",
        "MH١٢AB1234",      # non-ASCII digits
    ])
    def test_invalid(self, plate):
        assert not is_valid_plate_number(plate)

    def test_non_string_is_invalid(self):
        assert not is_valid_plate_number(None)

    def test_normalize(self):
        assert normalize_plate_number(" mh 12 ab 1234 ") == "MH12AB1234"


class TestPhoneNumber:
    @pytest.mark.parametrize("phone", ["9876543210", "6000000000", "7123456789", "8999999999"])
    def test_valid(self, phone):
        assert is_valid_phone_number(phone)

    @pytest.mark.parametrize("phone", [
        "1234567890",      # leading 1
        "5876543210",      # leading 5
        "987654321",       # 9 digits
        "98765432101",     # 11 digits
        "98765 43210",
        "+919876543210",
        "",
    ])
    def test_invalid(self, phone):
        assert not is_valid_phone_number(phone)


class TestVehicleType:
    def test_known_types(self):
        assert parse_vehicle_type("Car") is VehicleType.CAR
        assert parse_vehicle_type("SUV") is VehicleType.SUV
        assert parse_vehicle_type(VehicleType.TRUCK) is VehicleType.TRUCK

    @pytest.mark.parametrize("value", ["car", "Van", "", None])
    def test_unknown_types(self, value):
        assert parse_vehicle_type(value) is None
