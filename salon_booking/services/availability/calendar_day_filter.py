"""Month view: which days still have at least one bookable slot"""
import calendar
from datetime import date, datetime
from typing import List

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import ValidationError
from salon_booking.models.employee import Employee
from salon_booking.services.availability.availability_context import AvailabilityContext
from salon_booking.services.availability.conflict_resolver import ConflictResolver
from salon_booking.services.availability.slot_generator import SlotGenerator


def month_days(year: int, month: int) -> List[date]:
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month}")
    if not 2000 <= year <= 2100:
        raise ValidationError(f"year must be between 2000 and 2100, got {year}")

    _, days_in_month = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, days_in_month + 1)]


class CalendarDayFilter:
    def __init__(self, generator: SlotGenerator):
        self.generator = generator

    def available_days(
            self,
            db: Session,
            employees: List[Employee],
            year: int,
            month: int,
            duration_minutes: int,
            now: datetime
    ) -> List[date]:
        """Days of the month with a free slot, ascending. Past days never qualify."""
        days = [day for day in month_days(year, month) if day >= now.date()]
        if not days or not employees:
            return []

        context = AvailabilityContext.load(db, employees, days[0], days[-1])
        resolver = ConflictResolver(context)

        return [
            day for day in days
            if self.generator.has_slot(resolver, employees, day, duration_minutes, now)
        ]
