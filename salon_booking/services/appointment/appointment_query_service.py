# ============================================================================
# FILE: salon_booking/services/appointment/appointment_query_service.py
# Pure read logic - no FastAPI dependencies, fully testable
# ============================================================================
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc
from typing import Optional, Dict, Any, List

from salon_booking.core.exceptions import PermissionDeniedError, ValidationError
from salon_booking.models.appointment import Appointment
from salon_booking.models.employee import Employee
from salon_booking.models.user import User
from salon_booking.services.appointment.booking_writer import BookingWriter
from salon_booking.services.schedule.schedule_service import ScheduleService

# Longest range the salon calendar returns at once (a month view plus padding weeks)
MAX_CALENDAR_DAYS = 62


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


class AppointmentQueryService:
    """Read-side operations for appointments."""

    @staticmethod
    def list_for_client(
            db: Session,
            user: User,
            status: Optional[str] = None,
            skip: int = 0,
            limit: int = 50
    ) -> List[Dict[str, Any]]:
        """The user's own appointments, newest first."""
        query = db.query(Appointment).options(
            selectinload(Appointment.addons),
            selectinload(Appointment.employee),
            selectinload(Appointment.service),
        ).filter(Appointment.client_id == user.id)

        if status:
            query = query.filter(Appointment.status == status)

        appointments = query.order_by(
            desc(Appointment.date), desc(Appointment.start_time)
        ).offset(skip).limit(limit).all()

        return [AppointmentQueryService.serialize(appt) for appt in appointments]

    @staticmethod
    def list_for_salon(
            db: Session,
            user: User,
            date_from: date,
            date_to: date,
            employee_id: Optional[int] = None,
            status: Optional[str] = None,
            salon_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Salon calendar for its owner: every appointment between date_from and
        date_to (inclusive), in day and start order.
        """
        if date_to < date_from:
            raise ValidationError("date_to must not be before date_from")
        if (date_to - date_from).days >= MAX_CALENDAR_DAYS:
            raise ValidationError(f"Date range is limited to {MAX_CALENDAR_DAYS} days")

        salon = ScheduleService.get_owned_salon(db, user, salon_id)

        query = db.query(Appointment).options(
            selectinload(Appointment.addons),
            selectinload(Appointment.employee),
            selectinload(Appointment.service),
        ).filter(
            Appointment.salon_id == salon.id,
            Appointment.date >= date_from,
            Appointment.date <= date_to
        )

        if employee_id is not None:
            employee = db.query(Employee).filter(Employee.id == employee_id).first()
            if not employee or employee.salon_id != salon.id:
                raise PermissionDeniedError(f"Employee {employee_id} does not work in this salon")
            query = query.filter(Appointment.employee_id == employee_id)

        if status:
            query = query.filter(Appointment.status == status)

        appointments = query.order_by(
            Appointment.date, Appointment.start_time, Appointment.employee_id
        ).all()

        return [AppointmentQueryService.serialize(appt) for appt in appointments]

    @staticmethod
    def get_for_user(db: Session, user: User, appointment_id: int) -> Dict[str, Any]:
        """A single appointment visible to its client or the salon owner."""
        appointment = BookingWriter.get_manageable_appointment(db, user, appointment_id)
        return AppointmentQueryService.serialize(appointment)

    @staticmethod
    def serialize(appointment: Appointment) -> Dict[str, Any]:
        """Convert Appointment model to dictionary."""
        addon_prices = [addon.price for addon in appointment.addons if addon.price is not None]
        return {
            "id": appointment.id,
            "salon_id": appointment.salon_id,
            "employee_id": appointment.employee_id,
            "employee_name": appointment.employee.name if appointment.employee else None,
            "service_id": appointment.service_id,
            "service_name": appointment.service.name if appointment.service else None,
            "client_id": appointment.client_id,
            "date": appointment.date.isoformat(),
            "start_time": appointment.start_time.strftime("%H:%M"),
            "end_time": appointment.end_time.strftime("%H:%M"),
            "status": appointment.status,
            "addons": sorted(addon.id for addon in appointment.addons),
            "price": _money(appointment.price),
            "service_price": _money(appointment.service.price) if appointment.service else None,
            "addon_price": _money(sum(addon_prices, Decimal("0.00"))),
            "created_at": appointment.created_at.isoformat() if appointment.created_at else None,
            "cancelled_at": appointment.cancelled_at.isoformat() if appointment.cancelled_at else None,
        }
