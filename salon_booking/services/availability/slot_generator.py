"""
Slot generation.

Every free window is stepped through at the configured granularity; a start
time is kept while start + duration still fits in the window.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from salon_booking.models.employee import Employee
from salon_booking.services.availability.conflict_resolver import ConflictResolver
from salon_booking.services.availability.time_window import format_minutes


@dataclass(frozen=True)
class Slot:
    """A bookable window for one employee"""
    employee_id: int
    employee_name: str
    start: int
    end: int

    def to_dict(self) -> Dict:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "start_time": format_minutes(self.start),
            "end_time": format_minutes(self.end),
        }


def earliest_start(day: date, now: datetime) -> Optional[int]:
    """
    First minute of day a slot may start at, given the current time.
    None when the whole day is in the past.
    """
    today = now.date()
    if day < today:
        return None
    if day > today:
        return 0

    minute = now.hour * 60 + now.minute
    if now.second or now.microsecond:
        minute += 1
    return minute


class SlotGenerator:
    def __init__(self, granularity_minutes: int = 15):
        if granularity_minutes <= 0:
            raise ValueError("Slot granularity must be positive")
        self.granularity_minutes = granularity_minutes

    def iter_employee_slots(
            self,
            resolver: ConflictResolver,
            employee: Employee,
            day: date,
            duration_minutes: int,
            not_before: int = 0
    ) -> Iterator[Slot]:
        """Lazily yield the employee's slots on day in start order"""
        for window in resolver.free_windows(employee, day, min_duration=duration_minutes):
            start = window.start
            while start + duration_minutes <= window.end:
                if start >= not_before:
                    yield Slot(
                        employee_id=employee.id,
                        employee_name=employee.name,
                        start=start,
                        end=start + duration_minutes,
                    )
                start += self.granularity_minutes

    def iter_slots(
            self,
            resolver: ConflictResolver,
            employees: Iterable[Employee],
            day: date,
            duration_minutes: int,
            now: datetime
    ) -> Iterator[Slot]:
        """Slots of every employee, employee by employee. Nothing for past days."""
        if duration_minutes <= 0:
            return

        not_before = earliest_start(day, now)
        if not_before is None:
            return

        for employee in employees:
            yield from self.iter_employee_slots(resolver, employee, day, duration_minutes, not_before)

    def generate(
            self,
            resolver: ConflictResolver,
            employees: Iterable[Employee],
            day: date,
            duration_minutes: int,
            now: datetime
    ) -> List[Slot]:
        """All slots, unique per (employee, start), ordered by start then employee"""
        unique: Dict[Tuple[int, int], Slot] = {}
        for slot in self.iter_slots(resolver, employees, day, duration_minutes, now):
            unique.setdefault((slot.employee_id, slot.start), slot)

        return sorted(unique.values(), key=lambda s: (s.start, s.employee_id))

    def has_slot(
            self,
            resolver: ConflictResolver,
            employees: Iterable[Employee],
            day: date,
            duration_minutes: int,
            now: datetime
    ) -> bool:
        """Stops at the first slot found"""
        return next(self.iter_slots(resolver, employees, day, duration_minutes, now), None) is not None
