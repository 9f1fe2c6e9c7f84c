"""Unit tests for check-in / checkout and the read side of the lifecycle manager."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import threading
import pytest
from datetime import timedelta
from unittest.mock import patch
from app.models.vehicle_record import RecordStatus, VehicleRecord, VehicleType
from app.services.errors import (
    AlreadyActiveError,
    AlreadyCheckedOutError,
    NotFoundError,
    ValidationError,
)
from app.services.lifecycle_service import VehicleLifecycleManager
from tests.conftest import T0


def check_in(manager, db, plate="MH12AB1234", vehicle_type="Car", owner="Asha", phone="9876543210"):
    return manager.check_in(db, plate, vehicle_type, owner, phone)


def assert_field_group_consistent(record):
    completed = record.status == RecordStatus.COMPLETED
    assert (record.check_out_time is not None) == completed
    assert (record.duration_hours is not None) == completed
    assert (record.charge is not None) == completed


class TestCheckIn:
    def test_creates_active_record(self, manager, db):
        record = check_in(manager, db)

        assert record.id
        assert record.vehicle_number == "MH12AB1234"
        assert record.vehicle_type is VehicleType.CAR
        assert record.owner_name == "Asha"
        assert record.phone_number == "9876543210"
        assert record.check_in_time == T0
        assert record.status is RecordStatus.ACTIVE
        assert_field_group_consistent(record)

    def test_plate_is_normalized(self, manager, db):
        record = check_in(manager, db, plate="mh 12 ab 1234")
        assert record.vehicle_number == "MH12AB1234"

    def test_second_checkin_while_active_refused(self, manager, db):
        check_in(manager, db)

        with pytest.raises(AlreadyActiveError) as exc:
            check_in(manager, db, plate="MH 12 AB 1234", owner="Someone Else")

        assert exc.value.vehicle_number == "MH12AB1234"
        assert "check out" in exc.value.message
        assert db.query(VehicleRecord).count() == 1

    def test_checkin_again_after_checkout(self, manager, db, clock):
        first = check_in(manager, db)
        clock.advance(hours=1)
        manager.check_out(db, first.id)

        second = check_in(manager, db)

        assert second.id != first.id
        assert second.status is RecordStatus.ACTIVE
        assert len(manager.list_active(db)) == 1
        assert db.query(VehicleRecord).count() == 2

    def test_ids_are_unique(self, manager, db):
        a = check_in(manager, db, plate="MH12AB1234")
        b = check_in(manager, db, plate="MH12AB1235")
        assert a.id != b.id

    @pytest.mark.parametrize("kwargs, field", [
        ({"plate": "MH1234"}, "vehicleNumber"),
        ({"vehicle_type": "Van"}, "vehicleType"),
        ({"owner": "   "}, "ownerName"),
        ({"phone": "1234567890"}, "phoneNumber"),
        ({"phone": " 9876543210 "}, "phoneNumber"),
    ])
    def test_validation_names_field_and_writes_nothing(self, manager, db, kwargs, field):
        with pytest.raises(ValidationError) as exc:
            check_in(manager, db, **kwargs)

        assert exc.value.field == field
        assert db.query(VehicleRecord).count() == 0

    def test_validation_runs_before_uniqueness(self, manager, db):
        check_in(manager, db)
        with pytest.raises(ValidationError):
            check_in(manager, db, phone="123")

    def test_database_index_backs_up_uniqueness(self, file_session_factory, clock):
        """A second process (own lock) that misses the active row still cannot insert."""
        desk_a = VehicleLifecycleManager(clock=clock)
        desk_b = VehicleLifecycleManager(clock=clock)

        with file_session_factory() as db:
            check_in(desk_a, db)

        with file_session_factory() as db:
            with patch.object(desk_b, "find_active_by_plate", return_value=None):
                with pytest.raises(AlreadyActiveError):
                    check_in(desk_b, db)
            assert len(desk_b.list_active(db)) == 1


class TestCheckOut:
    def test_five_hours_flat_charge(self, manager, db, clock):
        record = check_in(manager, db)
        clock.advance(hours=5)

        done = manager.check_out(db, record.id)

        assert done.status is RecordStatus.COMPLETED
        assert done.check_out_time == T0 + timedelta(hours=5)
        assert done.duration_hours == 5.0
        assert done.charge == 10
        assert_field_group_consistent(done)

    def test_thirty_hours_two_days(self, manager, db, clock):
        record = check_in(manager, db)
        clock.advance(hours=30)

        done = manager.check_out(db, record.id)

        assert done.duration_hours == 30.0
        assert done.charge == 40

    def test_second_checkout_fails(self, manager, db, clock):
        record = check_in(manager, db)
        clock.advance(hours=2)
        manager.check_out(db, record.id)
        clock.advance(hours=20)

        with pytest.raises(AlreadyCheckedOutError) as exc:
            manager.check_out(db, record.id)

        assert exc.value.record_id == record.id
        reloaded = manager.get(db, record.id)
        assert reloaded.status is RecordStatus.COMPLETED
        assert reloaded.charge == 10
        assert reloaded.check_out_time == T0 + timedelta(hours=2)

    def test_unknown_id(self, manager, db):
        with pytest.raises(NotFoundError) as exc:
            manager.check_out(db, "does-not-exist")
        assert exc.value.record_id == "does-not-exist"

    def test_clock_behind_checkin_never_produces_negative_duration(self, manager, db, clock):
        record = check_in(manager, db)
        clock.advance(minutes=-10)

        done = manager.check_out(db, record.id)

        assert done.check_out_time >= done.check_in_time
        assert done.duration_hours == 0.0
        assert done.charge == 10

    def test_stale_reader_cannot_check_out_twice(self, file_session_factory, clock):
        """Another process completed the record after this session loaded it."""
        desk_a = VehicleLifecycleManager(clock=clock)
        desk_b = VehicleLifecycleManager(clock=clock)
        with file_session_factory() as db:
            record_id = check_in(desk_a, db).id

        with file_session_factory() as db_a, file_session_factory() as db_b:
            desk_a.get(db_a, record_id)        # loaded while still active
            clock.advance(hours=3)
            desk_b.check_out(db_b, record_id)

            with pytest.raises(AlreadyCheckedOutError):
                desk_a.check_out(db_a, record_id)

        with file_session_factory() as db:
            record = desk_a.get(db, record_id)
            assert record.charge == 10
            assert record.duration_hours == 3.0


class TestConcurrency:
    def _run_threads(self, target, count=8):
        barrier = threading.Barrier(count)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            outcome = target()
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_concurrent_checkins_same_plate_one_wins(self, manager, file_session_factory):
        def attempt():
            with file_session_factory() as db:
                try:
                    check_in(manager, db)
                    return "ok"
                except AlreadyActiveError:
                    return "refused"

        results = self._run_threads(attempt)

        assert results.count("ok") == 1
        assert results.count("refused") == 7

    def test_concurrent_checkouts_same_id_one_wins(self, manager, file_session_factory, clock):
        with file_session_factory() as db:
            record_id = check_in(manager, db).id
        clock.advance(hours=13)

        def attempt():
            with file_session_factory() as db:
                try:
                    manager.check_out(db, record_id)
                    return "ok"
                except AlreadyCheckedOutError:
                    return "refused"

        results = self._run_threads(attempt)

        assert results.count("ok") == 1
        assert results.count("refused") == 7
        with file_session_factory() as db:
            assert manager.get(db, record_id).charge == 20


class TestReads:
    @pytest.fixture
    def populated(self, manager, db, clock):
        """
        T0      Asha  checks in (car)
        T0+1h   Ravi  checks in (bike)
        T0+2h   Asha  checks out (2h → 10)
        next day Meena checks in (SUV), Ravi checks out (~25h → 40)
        """
        asha = check_in(manager, db, plate="MH12AB1234", owner="Asha")
        clock.advance(hours=1)
        ravi = check_in(manager, db, plate="KA05MZ9999", vehicle_type="Bike",
                        owner="Ravi", phone="9123456780")
        clock.advance(hours=1)
        manager.check_out(db, asha.id)
        clock.advance(days=1)
        meena = check_in(manager, db, plate="DL1C123", vehicle_type="SUV",
                         owner="Meena", phone="8000000001")
        manager.check_out(db, ravi.id)
        return {"asha": asha.id, "ravi": ravi.id, "meena": meena.id}

    def test_list_active(self, manager, db, populated):
        active = manager.list_active(db)
        assert [r.id for r in active] == [populated["meena"]]

    def test_list_all_newest_first(self, manager, db, populated):
        assert [r.id for r in manager.list_all(db)] == [
            populated["meena"], populated["ravi"], populated["asha"],
        ]

    def test_total_revenue(self, manager, db, populated):
        assert manager.total_revenue(db) == 50
        assert manager.count_completed(db) == 2

    def test_total_revenue_empty(self, manager, db):
        assert manager.total_revenue(db) == 0

    def test_today_views(self, manager, db, populated):
        assert [r.id for r in manager.list_today(db)] == [populated["meena"]]
        assert [r.id for r in manager.list_completed_today(db)] == [populated["ravi"]]

    def test_completed_since(self, manager, db, populated):
        since = T0 + timedelta(hours=3)
        assert [r.id for r in manager.list_completed(db, since=since)] == [populated["ravi"]]
        assert len(manager.list_completed(db)) == 2

    def test_revenue_window(self, manager, db, populated):
        since, until = manager.today_window()
        assert manager.total_revenue(db, since, until) == 40

    def test_find_active_by_plate(self, manager, db, populated):
        assert manager.find_active_by_plate(db, "dl 1 c 123").id == populated["meena"]
        assert manager.find_active_by_plate(db, "MH12AB1234") is None

    def test_get_unknown(self, manager, db):
        with pytest.raises(NotFoundError):
            manager.get(db, "nope")

    def test_reads_do_not_mutate(self, manager, db, populated):
        before = [(r.id, r.status, r.charge) for r in manager.list_all(db)]
        manager.list_active(db)
        manager.list_today(db)
        manager.total_revenue(db)
        after = [(r.id, r.status, r.charge) for r in manager.list_all(db)]
        assert before == after


class TestInvariantsOverSequence:
    def test_random_walk_keeps_invariants(self, manager, db, clock):
        plates = ["MH12AB1234", "KA05MZ9999", "DL1C123"]
        script = [
            ("in", 0), ("in", 1), ("in", 0), ("out", 0), ("in", 0), ("in", 2),
            ("out", 1), ("out", 1), ("in", 1), ("out", 2), ("out", 0), ("in", 2),
        ]
        for action, idx in script:
            clock.advance(hours=7)
            plate = plates[idx]
            if action == "in":
                try:
                    check_in(manager, db, plate=plate)
                except AlreadyActiveError:
                    pass
            else:
                active = manager.find_active_by_plate(db, plate)
                if active is not None:
                    manager.check_out(db, active.id)

            records = manager.list_all(db)
            for p in plates:
                assert sum(1 for r in records if r.vehicle_number == p and r.is_active) <= 1
            for r in records:
                assert_field_group_consistent(r)
                if r.check_out_time is not None:
                    assert r.check_out_time >= r.check_in_time
