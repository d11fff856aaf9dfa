"""
Everything the conflict resolver needs for a set of employees over a date
range, loaded with one query per table.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from salon_booking.models.appointment import Appointment, AppointmentStatus
from salon_booking.models.availability import EmployeeSchedule, EmployeeTimeOff, EmployeeVacation
from salon_booking.models.employee import Employee
from salon_booking.models.salon import SalonHoliday
from salon_booking.services.availability.time_window import TimeWindow


class AvailabilityContext:
    """Read-only snapshot of schedules, absences and bookings"""

    def __init__(
            self,
            schedules: Dict[Tuple[int, int], EmployeeSchedule],
            vacations: Dict[int, List[Tuple[date, date]]],
            holidays: Dict[int, Set[date]],
            appointments: Dict[Tuple[int, date], List[TimeWindow]],
            time_off: Dict[Tuple[int, date], List[TimeWindow]],
    ):
        self.schedules = schedules
        self.vacations = vacations
        self.holidays = holidays
        self.appointments = appointments
        self.time_off = time_off

    @classmethod
    def load(
            cls,
            db: Session,
            employees: Iterable[Employee],
            start_date: date,
            end_date: date,
            exclude_appointment_id: Optional[int] = None
    ) -> "AvailabilityContext":
        """
        Load data for employees between start_date and end_date inclusive.

        exclude_appointment_id leaves one appointment out of the booked set,
        used when rescheduling it.
        """
        employees = list(employees)
        employee_ids = [employee.id for employee in employees]
        salon_ids = {employee.salon_id for employee in employees}

        if not employee_ids:
            return cls({}, {}, {}, {}, {})

        schedules = {
            (row.employee_id, row.day_of_week): row
            for row in db.query(EmployeeSchedule).filter(
                EmployeeSchedule.employee_id.in_(employee_ids)
            ).all()
        }

        vacations: Dict[int, List[Tuple[date, date]]] = defaultdict(list)
        for row in db.query(EmployeeVacation).filter(
                EmployeeVacation.employee_id.in_(employee_ids),
                EmployeeVacation.start_date <= end_date,
                EmployeeVacation.end_date >= start_date
        ).all():
            vacations[row.employee_id].append((row.start_date, row.end_date))

        holidays: Dict[int, Set[date]] = defaultdict(set)
        for row in db.query(SalonHoliday).filter(
                SalonHoliday.salon_id.in_(salon_ids),
                SalonHoliday.date.between(start_date, end_date)
        ).all():
            holidays[row.salon_id].add(row.date)

        query = db.query(Appointment).filter(
            Appointment.employee_id.in_(employee_ids),
            Appointment.date.between(start_date, end_date),
            Appointment.status == AppointmentStatus.BOOKED.value
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        appointments: Dict[Tuple[int, date], List[TimeWindow]] = defaultdict(list)
        for row in query.all():
            appointments[(row.employee_id, row.date)].append(
                TimeWindow.from_times(row.start_time, row.end_time)
            )

        time_off: Dict[Tuple[int, date], List[TimeWindow]] = defaultdict(list)
        for row in db.query(EmployeeTimeOff).filter(
                EmployeeTimeOff.employee_id.in_(employee_ids),
                EmployeeTimeOff.date.between(start_date, end_date)
        ).all():
            if row.start_time < row.end_time:
                time_off[(row.employee_id, row.date)].append(
                    TimeWindow.from_times(row.start_time, row.end_time)
                )

        return cls(schedules, vacations, holidays, appointments, time_off)

    def schedule_for(self, employee_id: int, day: date) -> Optional[EmployeeSchedule]:
        return self.schedules.get((employee_id, day.weekday()))

    def on_vacation(self, employee_id: int, day: date) -> bool:
        return any(start <= day <= end for start, end in self.vacations.get(employee_id, ()))

    def is_holiday(self, salon_id: int, day: date) -> bool:
        return day in self.holidays.get(salon_id, ())

    def booked_windows(self, employee_id: int, day: date) -> List[TimeWindow]:
        return self.appointments.get((employee_id, day), [])

    def time_off_windows(self, employee_id: int, day: date) -> List[TimeWindow]:
        return self.time_off.get((employee_id, day), [])
