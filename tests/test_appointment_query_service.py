"""
Tests for appointment listings.
"""
from datetime import date, time

import pytest

from conftest import NOW, WEDNESDAY
from salon_booking.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from salon_booking.models import User
from salon_booking.services.appointment.appointment_query_service import AppointmentQueryService
from salon_booking.services.appointment.booking_writer import BookingWriter

THURSDAY = date(2026, 10, 22)


def book(db, seeded, employee_id, day, start, client_id=None, addon_ids=()):
    return BookingWriter.create_appointment(
        db=db,
        client=db.get(User, client_id or seeded.client_id),
        employee_id=employee_id,
        service_id=seeded.service_id,
        day=day,
        start_time=start,
        addon_ids=addon_ids,
        now=NOW,
    )


class TestSalonCalendar:

    @pytest.fixture
    def bookings(self, db, seeded):
        return [
            book(db, seeded, seeded.anna_id, WEDNESDAY, time(11, 0)),
            book(db, seeded, seeded.marek_id, WEDNESDAY, time(9, 0), client_id=seeded.other_client_id),
            book(db, seeded, seeded.anna_id, THURSDAY, time(10, 0), addon_ids=[seeded.wash_addon_id]),
        ]

    def test_single_day_in_start_order(self, db, seeded, bookings):
        owner = db.get(User, seeded.owner_id)

        listed = AppointmentQueryService.list_for_salon(db, owner, WEDNESDAY, WEDNESDAY)

        assert [(a["employee_name"], a["start_time"]) for a in listed] == [("Marek", "09:00"), ("Anna", "11:00")]

    def test_month_range(self, db, seeded, bookings):
        owner = db.get(User, seeded.owner_id)

        listed = AppointmentQueryService.list_for_salon(db, owner, date(2026, 10, 1), date(2026, 10, 31))

        assert [a["id"] for a in listed] == [bookings[1].id, bookings[0].id, bookings[2].id]
        assert listed[2]["price"] == 100.0
        assert listed[2]["service_price"] == 80.0
        assert listed[2]["addon_price"] == 20.0

    def test_filter_by_employee(self, db, seeded, bookings):
        owner = db.get(User, seeded.owner_id)

        listed = AppointmentQueryService.list_for_salon(
            db, owner, date(2026, 10, 1), date(2026, 10, 31), employee_id=seeded.anna_id
        )

        assert {a["employee_id"] for a in listed} == {seeded.anna_id}
        assert len(listed) == 2

    def test_filter_by_status(self, db, seeded, bookings):
        owner = db.get(User, seeded.owner_id)
        BookingWriter.change_status(db, owner, bookings[0].id, "cancelled")

        listed = AppointmentQueryService.list_for_salon(db, owner, WEDNESDAY, THURSDAY, status="booked")

        assert bookings[0].id not in [a["id"] for a in listed]

    def test_employee_of_another_salon_rejected(self, db, seeded, bookings):
        stranger = db.query(User).filter(User.email == "stranger@example.com").one()

        with pytest.raises(PermissionDeniedError):
            AppointmentQueryService.list_for_salon(db, stranger, WEDNESDAY, WEDNESDAY, employee_id=seeded.anna_id)

    def test_other_owner_sees_nothing_of_this_salon(self, db, seeded, bookings):
        stranger = db.query(User).filter(User.email == "stranger@example.com").one()

        assert AppointmentQueryService.list_for_salon(db, stranger, WEDNESDAY, THURSDAY) == []

    def test_client_without_salon(self, db, seeded):
        client = db.get(User, seeded.client_id)

        with pytest.raises(NotFoundError):
            AppointmentQueryService.list_for_salon(db, client, WEDNESDAY, WEDNESDAY)

    def test_reversed_range_rejected(self, db, seeded):
        owner = db.get(User, seeded.owner_id)

        with pytest.raises(ValidationError):
            AppointmentQueryService.list_for_salon(db, owner, THURSDAY, WEDNESDAY)

    def test_range_too_long_rejected(self, db, seeded):
        owner = db.get(User, seeded.owner_id)

        with pytest.raises(ValidationError):
            AppointmentQueryService.list_for_salon(db, owner, date(2026, 10, 1), date(2026, 12, 31))
