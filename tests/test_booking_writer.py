"""
Tests for transactional booking writes.
"""
import random
import threading
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import NOW, SUNDAY, WEDNESDAY
from salon_booking.core.exceptions import (
    BookingError,
    BookingLimitError,
    InvalidStatusTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    SlotTakenError,
    SlotUnavailableError,
    ValidationError,
)
from salon_booking.models import Appointment, AppointmentStatus, EmployeeTimeOff, SalonHoliday, User
from salon_booking.models.appointment import NO_OVERLAP_CONSTRAINT
from salon_booking.services.appointment.booking_writer import BookingWriter
from salon_booking.services.availability.availability_service import AvailabilityService
from salon_booking.services.availability.time_window import TimeWindow


def create(db, seeded, client_id=None, employee_id=None, day=WEDNESDAY, start="10:00", **kwargs):
    client = db.get(User, client_id or seeded.client_id)
    return BookingWriter.create_appointment(
        db=db,
        client=client,
        employee_id=employee_id or seeded.anna_id,
        service_id=kwargs.pop("service_id", seeded.service_id),
        day=day,
        start_time=time.fromisoformat(start),
        now=kwargs.pop("now", NOW),
        **kwargs
    )


class TestCreateAppointment:

    def test_books_slot(self, db, seeded):
        appointment = create(db, seeded, addon_ids=[seeded.wash_addon_id])

        assert appointment.id is not None
        assert appointment.status == AppointmentStatus.BOOKED.value
        assert appointment.start_time == time(10, 0)
        assert appointment.end_time == time(10, 45)
        assert [addon.id for addon in appointment.addons] == [seeded.wash_addon_id]
        assert appointment.salon_id == seeded.salon_id

    def test_booked_slot_disappears_from_availability(self, db, seeded):
        create(db, seeded)

        slots = AvailabilityService.get_available_slots(
            db, seeded.service_id, WEDNESDAY, employee_id=seeded.anna_id, now=NOW
        )
        assert "10:00" not in [slot["start_time"] for slot in slots]

    def test_matching_end_time_accepted(self, db, seeded):
        appointment = create(db, seeded, end_time=time(10, 30))
        assert appointment.end_time == time(10, 30)

    def test_mismatched_end_time_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            create(db, seeded, end_time=time(11, 0))

    def test_overlap_is_slot_taken(self, db, seeded):
        create(db, seeded, start="10:00")

        with pytest.raises(SlotTakenError) as exc_info:
            create(db, seeded, client_id=seeded.other_client_id, start="10:15")

        assert exc_info.value.code == "SLOT_TAKEN"
        assert db.query(Appointment).count() == 1

    def test_back_to_back_allowed(self, db, seeded):
        create(db, seeded, start="10:00")
        second = create(db, seeded, client_id=seeded.other_client_id, start="10:30")

        assert second.start_time == time(10, 30)

    def test_other_employee_same_time_allowed(self, db, seeded):
        create(db, seeded, start="10:00")
        other = create(db, seeded, client_id=seeded.other_client_id, employee_id=seeded.marek_id, start="10:00")

        assert other.employee_id == seeded.marek_id

    def test_outside_working_hours(self, db, seeded):
        with pytest.raises(SlotUnavailableError):
            create(db, seeded, start="16:45")

    def test_day_off(self, db, seeded):
        with pytest.raises(SlotUnavailableError):
            create(db, seeded, day=SUNDAY)

    def test_holiday(self, db, seeded):
        db.add(SalonHoliday(salon_id=seeded.salon_id, date=WEDNESDAY))
        db.commit()

        with pytest.raises(SlotUnavailableError):
            create(db, seeded)

    def test_time_off(self, db, seeded):
        db.add(EmployeeTimeOff(employee_id=seeded.anna_id, date=WEDNESDAY, start_time=time(10, 15), end_time=time(11, 0)))
        db.commit()

        with pytest.raises(SlotUnavailableError):
            create(db, seeded, start="10:00")

    def test_past_time_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            create(db, seeded, now=datetime(2026, 10, 21, 10, 5))

    def test_employee_must_perform_service(self, db, seeded):
        with pytest.raises(ValidationError):
            create(db, seeded, employee_id=seeded.marek_id, service_id=seeded.long_service_id)

    def test_unknown_employee(self, db, seeded):
        with pytest.raises(NotFoundError):
            create(db, seeded, employee_id=9999)

    def test_client_daily_limit(self, db, seeded):
        create(db, seeded, start="09:00")
        create(db, seeded, start="11:00")

        with pytest.raises(BookingLimitError):
            create(db, seeded, start="13:00")

        # Limit is per service
        other = create(db, seeded, start="14:00", service_id=seeded.long_service_id)
        assert other.end_time == time(15, 30)


class TestConcurrentBooking:

    def test_only_one_of_two_concurrent_bookings_wins(self, session_factory, seeded):
        barrier = threading.Barrier(2)
        results = []
        lock = threading.Lock()

        def attempt(client_id):
            session = session_factory()
            try:
                client = session.get(User, client_id)
                barrier.wait()
                BookingWriter.create_appointment(
                    db=session,
                    client=client,
                    employee_id=seeded.anna_id,
                    service_id=seeded.service_id,
                    day=WEDNESDAY,
                    start_time=time(10, 0),
                    now=NOW,
                )
                outcome = "booked"
            except SlotTakenError as e:
                outcome = e.code
            finally:
                session.close()
            with lock:
                results.append(outcome)

        threads = [
            threading.Thread(target=attempt, args=(client_id,))
            for client_id in (seeded.client_id, seeded.other_client_id)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert sorted(results) == ["SLOT_TAKEN", "booked"]

        session = session_factory()
        try:
            assert session.query(Appointment).filter(Appointment.status == "booked").count() == 1
        finally:
            session.close()

    def test_random_booking_sequence_never_overlaps(self, db, seeded):
        rng = random.Random(20261021)
        client_ids = [seeded.client_id, seeded.other_client_id]

        for _ in range(60):
            start_minutes = rng.randrange(9 * 60, 17 * 60, 5)
            try:
                create(
                    db,
                    seeded,
                    client_id=rng.choice(client_ids),
                    employee_id=rng.choice([seeded.anna_id, seeded.marek_id]),
                    start=f"{start_minutes // 60:02d}:{start_minutes % 60:02d}",
                    addon_ids=rng.choice([[], [seeded.wash_addon_id], [seeded.styling_addon_id]]),
                )
            except (SlotTakenError, SlotUnavailableError, BookingLimitError):
                pass

        booked = db.query(Appointment).filter(Appointment.status == "booked").all()
        assert booked
        for employee_id in (seeded.anna_id, seeded.marek_id):
            windows = sorted(
                (TimeWindow.from_times(a.start_time, a.end_time) for a in booked if a.employee_id == employee_id),
                key=lambda w: w.start
            )
            for earlier, later in zip(windows, windows[1:]):
                assert not earlier.overlaps(later)


class TestReschedule:

    def test_move_keeps_id(self, db, seeded):
        appointment = create(db, seeded, start="10:00")
        client = db.get(User, seeded.client_id)

        moved = BookingWriter.reschedule_appointment(
            db, client, appointment.id, day=date(2026, 10, 22), start_time=time(12, 0), now=NOW
        )

        assert moved.id == appointment.id
        assert moved.date == date(2026, 10, 22)
        assert moved.start_time == time(12, 0)
        assert moved.end_time == time(12, 30)

    def test_shift_within_own_window(self, db, seeded):
        appointment = create(db, seeded, start="10:00")
        client = db.get(User, seeded.client_id)

        moved = BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(10, 15), now=NOW)

        assert moved.start_time == time(10, 15)
        assert moved.end_time == time(10, 45)

    def test_addons_change_recomputes_end(self, db, seeded):
        appointment = create(db, seeded, start="10:00")
        client = db.get(User, seeded.client_id)

        moved = BookingWriter.reschedule_appointment(
            db, client, appointment.id, addon_ids=[seeded.styling_addon_id], now=NOW
        )

        assert moved.end_time == time(11, 0)
        assert [addon.id for addon in moved.addons] == [seeded.styling_addon_id]

    def test_move_onto_other_booking_is_slot_taken(self, db, seeded):
        create(db, seeded, client_id=seeded.other_client_id, start="12:00")
        appointment = create(db, seeded, start="10:00")
        client = db.get(User, seeded.client_id)

        with pytest.raises(SlotTakenError):
            BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(11, 45), now=NOW)

        db.refresh(appointment)
        assert appointment.start_time == time(10, 0)

    def test_cancelled_cannot_move(self, db, seeded):
        appointment = create(db, seeded)
        client = db.get(User, seeded.client_id)
        BookingWriter.change_status(db, client, appointment.id, "cancelled")

        with pytest.raises(InvalidStatusTransitionError):
            BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(12, 0), now=NOW)

    def test_other_client_cannot_move(self, db, seeded):
        appointment = create(db, seeded)
        other = db.get(User, seeded.other_client_id)

        with pytest.raises(PermissionDeniedError):
            BookingWriter.reschedule_appointment(db, other, appointment.id, start_time=time(12, 0), now=NOW)

    def test_salon_owner_can_move(self, db, seeded):
        appointment = create(db, seeded)
        owner = db.get(User, seeded.owner_id)

        moved = BookingWriter.reschedule_appointment(db, owner, appointment.id, start_time=time(15, 0), now=NOW)

        assert moved.start_time == time(15, 0)


class TestStatusTransitions:

    def test_cancel_frees_slot(self, db, seeded):
        appointment = create(db, seeded)
        client = db.get(User, seeded.client_id)

        cancelled = BookingWriter.change_status(db, client, appointment.id, "cancelled")

        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_at is not None
        again = create(db, seeded, client_id=seeded.other_client_id)
        assert again.start_time == time(10, 0)

    def test_complete(self, db, seeded):
        appointment = create(db, seeded)
        owner = db.get(User, seeded.owner_id)

        assert BookingWriter.change_status(db, owner, appointment.id, "completed").status == "completed"

    @pytest.mark.parametrize("first,second", [
        ("cancelled", "booked"),
        ("cancelled", "completed"),
        ("completed", "cancelled"),
    ])
    def test_terminal_states(self, db, seeded, first, second):
        appointment = create(db, seeded)
        client = db.get(User, seeded.client_id)
        BookingWriter.change_status(db, client, appointment.id, first)

        with pytest.raises(InvalidStatusTransitionError):
            BookingWriter.change_status(db, client, appointment.id, second)

    def test_unknown_appointment(self, db, seeded):
        client = db.get(User, seeded.client_id)
        with pytest.raises(NotFoundError):
            BookingWriter.change_status(db, client, 9999, "cancelled")


class TestPrice:

    def test_price_includes_addons(self, db, seeded):
        appointment = create(db, seeded, addon_ids=[seeded.wash_addon_id, seeded.styling_addon_id])

        assert appointment.price == Decimal("140.00")

    def test_price_without_addons(self, db, seeded):
        assert create(db, seeded).price == Decimal("80.00")

    def test_reschedule_with_new_addons_recomputes_price(self, db, seeded):
        appointment = create(db, seeded, addon_ids=[seeded.wash_addon_id])
        client = db.get(User, seeded.client_id)

        moved = BookingWriter.reschedule_appointment(
            db, client, appointment.id, addon_ids=[seeded.styling_addon_id], now=NOW
        )

        assert moved.price == Decimal("120.00")

    def test_move_keeps_price(self, db, seeded):
        appointment = create(db, seeded, addon_ids=[seeded.wash_addon_id])
        client = db.get(User, seeded.client_id)

        moved = BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(14, 0), now=NOW)

        assert moved.price == Decimal("100.00")


class TestRequestedStart:

    def test_seconds_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            create(db, seeded, start="10:00:45")

        assert db.query(Appointment).count() == 0

    def test_seconds_in_end_time_rejected(self, db, seeded):
        with pytest.raises(ValidationError):
            create(db, seeded, end_time=time(10, 30, 15))

    def test_start_off_the_slot_grid_rejected(self, db, seeded):
        with pytest.raises(SlotUnavailableError):
            create(db, seeded, start="10:07")

    def test_off_grid_start_keeps_day_intact(self, db, seeded):
        with pytest.raises(SlotUnavailableError):
            create(db, seeded, start="10:07")

        slots = AvailabilityService.get_available_slots(
            db, seeded.service_id, WEDNESDAY, employee_id=seeded.anna_id, now=NOW
        )
        assert [slot["start_time"] for slot in slots[:5]] == ["09:00", "09:15", "09:30", "09:45", "10:00"]

    def test_start_of_free_window_accepted(self, db, seeded):
        # Free time now begins at 09:10, which is a slot the generator offers
        db.add(EmployeeTimeOff(employee_id=seeded.anna_id, date=WEDNESDAY, start_time=time(9, 0), end_time=time(9, 10)))
        db.commit()

        slots = AvailabilityService.get_available_slots(
            db, seeded.service_id, WEDNESDAY, employee_id=seeded.anna_id, now=NOW
        )
        assert slots[0]["start_time"] == "09:10"

        appointment = create(db, seeded, start="09:10")
        assert appointment.start_time == time(9, 10)

    def test_opening_grid_still_accepted_after_shifted_window(self, db, seeded):
        db.add(EmployeeTimeOff(employee_id=seeded.anna_id, date=WEDNESDAY, start_time=time(9, 0), end_time=time(9, 10)))
        db.commit()

        assert create(db, seeded, start="10:15").start_time == time(10, 15)

    def test_reschedule_off_grid_rejected(self, db, seeded):
        appointment = create(db, seeded)
        client = db.get(User, seeded.client_id)

        with pytest.raises(SlotUnavailableError):
            BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(12, 5), now=NOW)


class TestProviderBooking:

    def test_owner_books_for_client(self, db, seeded):
        owner = db.get(User, seeded.owner_id)

        appointment = BookingWriter.create_for_client(
            db, owner, seeded.client_id, seeded.anna_id, seeded.service_id, WEDNESDAY, time(11, 0), now=NOW
        )

        assert appointment.client_id == seeded.client_id
        assert appointment.employee_id == seeded.anna_id
        assert appointment.end_time == time(11, 30)

    def test_overlap_is_slot_taken(self, db, seeded):
        create(db, seeded, start="11:00")
        owner = db.get(User, seeded.owner_id)

        with pytest.raises(SlotTakenError):
            BookingWriter.create_for_client(
                db, owner, seeded.other_client_id, seeded.anna_id, seeded.service_id,
                WEDNESDAY, time(11, 15), now=NOW
            )

    def test_daily_client_limit_not_applied(self, db, seeded):
        create(db, seeded, start="09:00")
        create(db, seeded, start="11:00")
        owner = db.get(User, seeded.owner_id)

        third = BookingWriter.create_for_client(
            db, owner, seeded.client_id, seeded.anna_id, seeded.service_id, WEDNESDAY, time(13, 0), now=NOW
        )

        assert third.status == "booked"

    def test_other_salon_owner_rejected(self, db, seeded):
        stranger = db.query(User).filter(User.email == "stranger@example.com").one()

        with pytest.raises(PermissionDeniedError):
            BookingWriter.create_for_client(
                db, stranger, seeded.client_id, seeded.anna_id, seeded.service_id, WEDNESDAY, time(11, 0), now=NOW
            )

    def test_unknown_client(self, db, seeded):
        owner = db.get(User, seeded.owner_id)

        with pytest.raises(NotFoundError):
            BookingWriter.create_for_client(
                db, owner, 9999, seeded.anna_id, seeded.service_id, WEDNESDAY, time(11, 0), now=NOW
            )


class FakeDriverError(Exception):
    """Stands in for a DBAPI error carrying a PostgreSQL SQLSTATE"""

    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


class RollbackRecorder:

    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


class TestWriteErrorMapping:

    def _raise_mapped(self, error):
        session = RollbackRecorder()
        with pytest.raises(BookingError) as exc_info:
            BookingWriter._handle_write_error(session, error)
        assert session.rollbacks == 1
        return exc_info.value

    def test_exclusion_constraint_is_slot_taken(self):
        error = IntegrityError(
            "INSERT INTO appointments ...",
            {},
            FakeDriverError(f'conflicting key value violates exclusion constraint "{NO_OVERLAP_CONSTRAINT}"'),
        )

        assert self._raise_mapped(error).code == "SLOT_TAKEN"

    def test_other_integrity_error_is_validation_error(self):
        error = IntegrityError("INSERT INTO appointments ...", {}, FakeDriverError("foreign key violation"))

        assert self._raise_mapped(error).code == "VALIDATION_ERROR"

    @pytest.mark.parametrize("pgcode", ["55P03", "40001"])
    def test_lock_and_serialization_failures_are_slot_taken(self, pgcode):
        error = OperationalError("UPDATE employees ...", {}, FakeDriverError("could not obtain lock", pgcode))

        assert self._raise_mapped(error).code == "SLOT_TAKEN"

    def test_other_operational_error_is_service_unavailable(self):
        error = OperationalError("SELECT 1", {}, FakeDriverError("server closed the connection", "08006"))

        mapped = self._raise_mapped(error)

        assert isinstance(mapped, ServiceUnavailableError)
        assert mapped.code == "SERVICE_UNAVAILABLE"
        assert mapped.status_code == 503

    def test_booking_errors_pass_through(self):
        original = SlotUnavailableError("closed")

        assert self._raise_mapped(original) is original

    def test_lookup_failure_before_transaction_is_service_unavailable(self, db, seeded, monkeypatch):
        def unreachable(db, service_id):
            raise OperationalError("SELECT services ...", {}, FakeDriverError("connection refused"))

        monkeypatch.setattr(AvailabilityService, "get_service", staticmethod(unreachable))

        with pytest.raises(ServiceUnavailableError):
            create(db, seeded)

    def test_reschedule_lookup_failure_is_service_unavailable(self, db, seeded, monkeypatch):
        appointment = create(db, seeded)
        client = db.get(User, seeded.client_id)

        def unreachable(db, user, appointment_id):
            raise OperationalError("SELECT appointments ...", {}, FakeDriverError("connection refused"))

        monkeypatch.setattr(BookingWriter, "get_manageable_appointment", staticmethod(unreachable))

        with pytest.raises(ServiceUnavailableError):
            BookingWriter.reschedule_appointment(db, client, appointment.id, start_time=time(12, 0), now=NOW)
