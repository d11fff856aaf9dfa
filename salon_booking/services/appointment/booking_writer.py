# ============================================================================
# salon_booking/services/appointment/booking_writer.py
# Creates, moves and closes appointments. Every write that occupies time
# re-checks the window under a per-employee lock inside the same transaction.
# ============================================================================
"""Transactional appointment writes"""
from datetime import date, datetime, time, timezone
from typing import Optional, Sequence
import logging

from sqlalchemy import func, update, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from salon_booking.config.settings import get_settings
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
from salon_booking.models.appointment import Appointment, AppointmentStatus, NO_OVERLAP_CONSTRAINT
from salon_booking.models.employee import Employee
from salon_booking.models.salon import Salon
from salon_booking.models.user import User
from salon_booking.services.availability.availability_context import AvailabilityContext
from salon_booking.services.availability.availability_service import AvailabilityService
from salon_booking.services.availability.conflict_resolver import ConflictResolver
from salon_booking.services.availability.duration_calculator import (
    DurationCalculator,
    calculate_total_duration,
    calculate_total_price,
)
from salon_booking.services.availability.slot_generator import earliest_start
from salon_booking.services.availability.time_window import TimeWindow, to_minutes, to_time

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATEs that mean another writer got there first
LOCK_NOT_AVAILABLE = "55P03"
SERIALIZATION_FAILURE = "40001"

ALLOWED_TRANSITIONS = {
    AppointmentStatus.BOOKED.value: {AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value},
}


class BookingWriter:
    """Handles appointment writes"""

    @staticmethod
    def create_appointment(
            db: Session,
            client: User,
            employee_id: int,
            service_id: int,
            day: date,
            start_time: time,
            end_time: Optional[time] = None,
            addon_ids: Sequence[int] = (),
            now: Optional[datetime] = None,
            enforce_client_limit: bool = True
    ) -> Appointment:
        """
        Book a slot for client.

        Raises SlotTakenError when the window overlaps another booked
        appointment of the employee, including one committed after the client
        loaded its slot list.
        """
        try:
            service = AvailabilityService.get_service(db, service_id)
            employee = ConflictResolver.candidate_employees(db, service, employee_id)[0]
            addons = DurationCalculator.load_addons(db, service, addon_ids)
            duration = calculate_total_duration(
                service.duration_minutes, (addon.duration_minutes for addon in addons)
            )
            window = BookingWriter._requested_window(start_time, end_time, duration)
            BookingWriter._ensure_not_past(day, window, now or AvailabilityService.salon_now(service))

            BookingWriter._lock_employee(db, employee.id)
            BookingWriter._check_window(db, employee, day, window)
            if enforce_client_limit:
                BookingWriter._check_client_limit(db, client.id, service.id, day)

            appointment = Appointment(
                salon_id=employee.salon_id,
                employee_id=employee.id,
                client_id=client.id,
                service_id=service.id,
                date=day,
                start_time=window.start_time,
                end_time=window.end_time,
                price=calculate_total_price(service.price, (addon.price for addon in addons)),
                status=AppointmentStatus.BOOKED.value,
            )
            appointment.addons = addons

            db.add(appointment)
            db.commit()
        except Exception as e:
            BookingWriter._handle_write_error(db, e)

        db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id}: employee {employee.id} "
            f"{day.isoformat()} {window} for client {client.id}"
        )
        return appointment

    @staticmethod
    def create_for_client(
            db: Session,
            provider: User,
            client_id: int,
            employee_id: int,
            service_id: int,
            day: date,
            start_time: time,
            end_time: Optional[time] = None,
            addon_ids: Sequence[int] = (),
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Staff panel booking: the salon owner books on behalf of a client.
        Same overlap and working-hours checks, no per-client daily limit.
        """
        try:
            employee = db.query(Employee).filter(Employee.id == employee_id).first()
            if not employee:
                raise NotFoundError(f"Employee {employee_id} not found")
            if employee.salon.owner_id != provider.id:
                raise PermissionDeniedError("You do not manage this employee")

            client = db.query(User).filter(User.id == client_id).first()
            if not client:
                raise NotFoundError(f"Client {client_id} not found")
        except Exception as e:
            BookingWriter._handle_write_error(db, e)

        logger.info(f"Provider {provider.id} is booking for client {client.id}")
        return BookingWriter.create_appointment(
            db=db,
            client=client,
            employee_id=employee_id,
            service_id=service_id,
            day=day,
            start_time=start_time,
            end_time=end_time,
            addon_ids=addon_ids,
            now=now,
            enforce_client_limit=False
        )

    @staticmethod
    def reschedule_appointment(
            db: Session,
            user: User,
            appointment_id: int,
            day: Optional[date] = None,
            start_time: Optional[time] = None,
            end_time: Optional[time] = None,
            addon_ids: Optional[Sequence[int]] = None,
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Move an appointment and/or change its add-ons, keeping its id.

        The appointment's current window is ignored by the overlap check so it
        can shift within its own time. Add-ons are kept when addon_ids is None.
        Duration and price follow the resulting add-ons.
        """
        try:
            appointment = BookingWriter.get_manageable_appointment(db, user, appointment_id)
            if not appointment.is_booked:
                raise InvalidStatusTransitionError(
                    f"Only booked appointments can be rescheduled (status: {appointment.status})"
                )

            service = appointment.service
            employee = appointment.employee
            addons = (
                DurationCalculator.load_addons(db, service, addon_ids)
                if addon_ids is not None else list(appointment.addons)
            )
            duration = calculate_total_duration(
                service.duration_minutes, (addon.duration_minutes for addon in addons)
            )

            day = day or appointment.date
            window = BookingWriter._requested_window(start_time or appointment.start_time, end_time, duration)
            BookingWriter._ensure_not_past(day, window, now or AvailabilityService.salon_now(service))

            BookingWriter._lock_employee(db, employee.id)
            BookingWriter._check_window(db, employee, day, window, exclude_appointment_id=appointment.id)
            if day != appointment.date:
                BookingWriter._check_client_limit(
                    db, appointment.client_id, service.id, day, exclude_appointment_id=appointment.id
                )

            appointment.date = day
            appointment.start_time = window.start_time
            appointment.end_time = window.end_time
            if addon_ids is not None:
                appointment.addons = addons
                appointment.price = calculate_total_price(service.price, (addon.price for addon in addons))
            db.commit()
        except Exception as e:
            BookingWriter._handle_write_error(db, e)

        db.refresh(appointment)
        logger.info(f"Rescheduled appointment {appointment.id} to {day.isoformat()} {window}")
        return appointment

    @staticmethod
    def change_status(
            db: Session,
            user: User,
            appointment_id: int,
            new_status: str
    ) -> Appointment:
        """booked -> cancelled or booked -> completed. Appointments are never deleted."""
        try:
            appointment = BookingWriter.get_manageable_appointment(db, user, appointment_id)

            if new_status not in ALLOWED_TRANSITIONS.get(appointment.status, set()):
                raise InvalidStatusTransitionError(
                    f"Cannot change appointment {appointment.id} from {appointment.status} to {new_status}"
                )

            appointment.status = new_status
            if new_status == AppointmentStatus.CANCELLED.value:
                appointment.cancelled_at = datetime.now(timezone.utc)
            db.commit()
        except Exception as e:
            BookingWriter._handle_write_error(db, e)

        db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} is now {new_status}")
        return appointment

    @staticmethod
    def get_manageable_appointment(db: Session, user: User, appointment_id: int) -> Appointment:
        """The appointment if user booked it or owns its salon"""
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")

        if appointment.client_id == user.id:
            return appointment

        salon = db.query(Salon).filter(Salon.id == appointment.salon_id).first()
        if user.is_provider and salon and salon.owner_id == user.id:
            return appointment

        raise PermissionDeniedError("You cannot manage this appointment")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _requested_window(start_time: time, end_time: Optional[time], duration: int) -> TimeWindow:
        for value in (start_time, end_time):
            if value is not None and (value.second or value.microsecond):
                raise ValidationError(f"Times are booked in whole minutes, got {value.isoformat()}")

        start = to_minutes(start_time)
        end = start + duration
        if end >= 24 * 60:
            raise SlotUnavailableError("Appointment must end on the same day")
        if end_time is not None and to_minutes(end_time) != end:
            raise ValidationError(
                f"end_time {end_time.strftime('%H:%M')} does not match the booked duration "
                f"of {duration} minutes (expected {to_time(end).strftime('%H:%M')})"
            )
        return TimeWindow(start=start, end=end)

    @staticmethod
    def _ensure_not_past(day: date, window: TimeWindow, now: datetime) -> None:
        not_before = earliest_start(day, now)
        if not_before is None or window.start < not_before:
            raise ValidationError("Cannot book an appointment in the past")

    @staticmethod
    def _lock_employee(db: Session, employee_id: int) -> None:
        """
        Serialize writers for one employee until commit/rollback.
        A row lock on PostgreSQL, the database write lock on SQLite.
        """
        if db.get_bind().dialect.name == "postgresql":
            timeout_ms = int(get_settings().BOOKING_LOCK_TIMEOUT_MS)
            db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))

        db.execute(
            update(Employee)
            .where(Employee.id == employee_id)
            .values(booking_version=Employee.booking_version + 1)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _check_window(
            db: Session,
            employee: Employee,
            day: date,
            window: TimeWindow,
            exclude_appointment_id: Optional[int] = None
    ) -> None:
        context = AvailabilityContext.load(db, [employee], day, day, exclude_appointment_id)
        ConflictResolver(context).check_window(
            employee, day, window, granularity_minutes=get_settings().SLOT_GRANULARITY_MINUTES
        )

    @staticmethod
    def _check_client_limit(
            db: Session,
            client_id: int,
            service_id: int,
            day: date,
            exclude_appointment_id: Optional[int] = None
    ) -> None:
        limit = get_settings().MAX_BOOKINGS_PER_CLIENT_PER_DAY
        query = db.query(func.count(Appointment.id)).filter(
            Appointment.client_id == client_id,
            Appointment.service_id == service_id,
            Appointment.date == day,
            Appointment.status == AppointmentStatus.BOOKED.value
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        if query.scalar() >= limit:
            raise BookingLimitError(
                f"You can book this service at most {limit} time(s) per day"
            )

    @staticmethod
    def _handle_write_error(db: Session, error: Exception) -> None:
        """Roll back and re-raise error as a BookingError"""
        db.rollback()

        if isinstance(error, BookingError):
            raise error

        if isinstance(error, IntegrityError):
            if NO_OVERLAP_CONSTRAINT in str(error.orig):
                logger.info("Overlap rejected by database constraint")
                raise SlotTakenError() from error
            logger.error(f"Integrity error while writing appointment: {error}", exc_info=True)
            raise ValidationError("Appointment data violates a database constraint") from error

        if isinstance(error, OperationalError):
            pgcode = getattr(error.orig, "pgcode", None)
            if pgcode in (LOCK_NOT_AVAILABLE, SERIALIZATION_FAILURE):
                logger.info(f"Concurrent booking detected (SQLSTATE {pgcode})")
                raise SlotTakenError() from error
            logger.error(f"Database unavailable while writing appointment: {error}", exc_info=True)
            raise ServiceUnavailableError("Booking is temporarily unavailable, please retry") from error

        if isinstance(error, SQLAlchemyError):
            logger.error(f"Database error while writing appointment: {error}", exc_info=True)
            raise ServiceUnavailableError("Booking is temporarily unavailable, please retry") from error

        raise error
