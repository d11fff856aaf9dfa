# ===== salon_booking/services/availability/availability_service.py =====
from typing import List, Dict, Optional, Sequence
from datetime import date, datetime
from sqlalchemy.orm import Session
import logging

from salon_booking.config.settings import get_settings
from salon_booking.core.exceptions import NotFoundError, ValidationError
from salon_booking.models.service import Service
from salon_booking.services.availability.availability_context import AvailabilityContext
from salon_booking.services.availability.calendar_day_filter import CalendarDayFilter
from salon_booking.services.availability.clock import local_now
from salon_booking.services.availability.conflict_resolver import ConflictResolver
from salon_booking.services.availability.duration_calculator import DurationCalculator
from salon_booking.services.availability.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Entry points for the booking calendar: available days and slots"""

    @staticmethod
    def get_service(db: Session, service_id: int) -> Service:
        service = db.query(Service).filter(Service.id == service_id).first()
        if not service:
            raise NotFoundError(f"Service {service_id} not found")
        if not service.is_active:
            raise ValidationError(f"Service {service_id} is not bookable")
        return service

    @staticmethod
    def salon_now(service: Service) -> datetime:
        return local_now(service.salon.timezone if service.salon else None)

    @staticmethod
    def slot_generator() -> SlotGenerator:
        return SlotGenerator(get_settings().SLOT_GRANULARITY_MINUTES)

    @staticmethod
    def get_available_slots(
            db: Session,
            service_id: int,
            day: date,
            employee_id: Optional[int] = None,
            addon_ids: Sequence[int] = (),
            total_duration: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> List[Dict]:
        """
        Bookable slots on one day:
        1. Total duration from service + add-ons (or the caller's override)
        2. Candidate employees (one, or everyone performing the service)
        3. Free windows per employee, stepped at the slot granularity
        """
        service = AvailabilityService.get_service(db, service_id)
        duration = DurationCalculator.resolve(db, service, addon_ids, total_duration)
        employees = ConflictResolver.candidate_employees(db, service, employee_id)
        now = now or AvailabilityService.salon_now(service)

        if not employees:
            logger.warning(f"No active employees perform service {service_id}")
            return []

        context = AvailabilityContext.load(db, employees, day, day)
        slots = AvailabilityService.slot_generator().generate(
            ConflictResolver(context), employees, day, duration, now
        )

        logger.info(
            f"{len(slots)} slots for service {service_id} on {day.isoformat()} "
            f"(employee={employee_id or 'any'}, duration={duration} min)"
        )
        return [slot.to_dict() for slot in slots]

    @staticmethod
    def get_available_days(
            db: Session,
            service_id: int,
            year: int,
            month: int,
            employee_id: Optional[int] = None,
            addon_ids: Sequence[int] = (),
            now: Optional[datetime] = None
    ) -> List[str]:
        """ISO dates in the month that have at least one bookable slot"""
        service = AvailabilityService.get_service(db, service_id)
        duration = DurationCalculator.resolve(db, service, addon_ids)
        employees = ConflictResolver.candidate_employees(db, service, employee_id)
        now = now or AvailabilityService.salon_now(service)

        days = CalendarDayFilter(AvailabilityService.slot_generator()).available_days(
            db, employees, year, month, duration, now
        )

        logger.info(
            f"{len(days)} available days for service {service_id} in {year}-{month:02d} "
            f"(employee={employee_id or 'any'})"
        )
        return [day.isoformat() for day in days]
