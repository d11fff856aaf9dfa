"""
Conflict resolution: which parts of an employee's day are still bookable.

The open interval from the weekly schedule, minus booked appointments and
time-off blocks. Day-off entries, vacations and salon holidays remove the
whole day.
"""
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import NotFoundError, SlotTakenError, SlotUnavailableError, ValidationError
from salon_booking.models.employee import Employee, employee_services
from salon_booking.models.service import Service
from salon_booking.services.availability.availability_context import AvailabilityContext
from salon_booking.services.availability.time_window import TimeWindow, subtract_windows

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Computes free windows per employee and day from a preloaded context"""

    def __init__(self, context: AvailabilityContext):
        self.context = context

    @staticmethod
    def candidate_employees(
            db: Session,
            service: Service,
            employee_id: Optional[int] = None
    ) -> List[Employee]:
        """
        The employee asked for, or every active employee performing the
        service when employee_id is None ("any").
        """
        if employee_id is not None:
            employee = db.query(Employee).filter(Employee.id == employee_id).first()
            if not employee:
                raise NotFoundError(f"Employee {employee_id} not found")
            if not employee.is_active:
                raise ValidationError(f"Employee {employee_id} is not active")
            if not employee.performs(service.id):
                raise ValidationError(
                    f"Employee {employee_id} does not perform service {service.id}"
                )
            return [employee]

        return db.query(Employee).join(
            employee_services, employee_services.c.employee_id == Employee.id
        ).filter(
            employee_services.c.service_id == service.id,
            Employee.is_active.is_(True)
        ).order_by(Employee.id).all()

    def blocked_reason(self, employee: Employee, day: date) -> Optional[str]:
        """Why the employee has no time at all on this day, None if they work"""
        schedule = self.context.schedule_for(employee.id, day)
        if schedule is None:
            return "no working hours for this weekday"
        if schedule.is_day_off:
            return "day off"
        if self.context.on_vacation(employee.id, day):
            return "employee vacation"
        if self.context.is_holiday(employee.salon_id, day):
            return "salon holiday"
        return None

    def working_window(self, employee: Employee, day: date) -> Optional[TimeWindow]:
        """Opening hours for the day, or None when the whole day is blocked"""
        if self.blocked_reason(employee, day):
            return None

        schedule = self.context.schedule_for(employee.id, day)
        if schedule.open_time is None or schedule.close_time is None:
            return None
        if schedule.open_time >= schedule.close_time:
            logger.warning(
                f"Ignoring schedule of employee {employee.id} on weekday "
                f"{schedule.day_of_week}: open {schedule.open_time} >= close {schedule.close_time}"
            )
            return None

        return TimeWindow.from_times(schedule.open_time, schedule.close_time)

    def free_windows(
            self,
            employee: Employee,
            day: date,
            min_duration: int = 1
    ) -> List[TimeWindow]:
        """Free sub-intervals of the working day that can hold min_duration minutes"""
        working = self.working_window(employee, day)
        if working is None:
            return []

        busy = self.context.booked_windows(employee.id, day) + self.context.time_off_windows(employee.id, day)
        return [
            window for window in subtract_windows(working, busy)
            if window.duration_minutes >= min_duration
        ]

    def on_slot_grid(self, employee: Employee, day: date, window: TimeWindow, granularity_minutes: int) -> bool:
        """
        True when window starts a whole number of steps after the opening time
        or after the start of the free window holding it.
        """
        working = self.working_window(employee, day)
        if working is None:
            return False

        origins = [working.start] + [
            free.start for free in self.free_windows(employee, day) if free.contains(window)
        ]
        return any((window.start - origin) % granularity_minutes == 0 for origin in origins)

    def check_window(
            self,
            employee: Employee,
            day: date,
            window: TimeWindow,
            granularity_minutes: Optional[int] = None
    ) -> None:
        """
        Raise unless window is bookable for the employee on day.

        Overlap with a booked appointment is SlotTakenError; every other
        reason is SlotUnavailableError. With granularity_minutes the start
        must also be one the slot generator can offer.
        """
        reason = self.blocked_reason(employee, day)
        if reason:
            raise SlotUnavailableError(f"{employee.name} is not available on {day.isoformat()}: {reason}")

        working = self.working_window(employee, day)
        if working is None or not working.contains(window):
            raise SlotUnavailableError(
                f"{window} is outside working hours of {employee.name} on {day.isoformat()}"
            )

        if any(block.overlaps(window) for block in self.context.time_off_windows(employee.id, day)):
            raise SlotUnavailableError(f"{employee.name} is unavailable during {window}")

        if any(booked.overlaps(window) for booked in self.context.booked_windows(employee.id, day)):
            raise SlotTakenError()

        if granularity_minutes and not self.on_slot_grid(employee, day, window, granularity_minutes):
            raise SlotUnavailableError(
                f"{window} does not start on the {granularity_minutes}-minute slot grid of {employee.name}"
            )
