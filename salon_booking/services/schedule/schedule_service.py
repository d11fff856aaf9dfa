# ============================================================================
# salon_booking/services/schedule/schedule_service.py
# Working hours and absences, managed by the salon owner
# ============================================================================
"""Service for the data that bounds availability: weekly hours, holidays, vacations, time off"""
from datetime import date, time
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salon_booking.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from salon_booking.models.availability import EmployeeSchedule, EmployeeTimeOff, EmployeeVacation
from salon_booking.models.employee import Employee
from salon_booking.models.salon import Salon, SalonHoliday
from salon_booking.models.user import User

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7


class ScheduleService:

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    @staticmethod
    def get_owned_salon(db: Session, user: User, salon_id: Optional[int] = None) -> Salon:
        """The given salon if user owns it, else the user's first salon"""
        query = db.query(Salon).filter(Salon.owner_id == user.id)
        if salon_id is not None:
            salon = db.query(Salon).filter(Salon.id == salon_id).first()
            if not salon:
                raise NotFoundError(f"Salon {salon_id} not found")
            if salon.owner_id != user.id:
                raise PermissionDeniedError("You do not manage this salon")
            return salon

        salon = query.order_by(Salon.id).first()
        if not salon:
            raise NotFoundError("You do not own a salon")
        return salon

    @staticmethod
    def get_owned_employee(db: Session, user: User, employee_id: int) -> Employee:
        employee = db.query(Employee).filter(Employee.id == employee_id).first()
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if employee.salon.owner_id != user.id:
            raise PermissionDeniedError("You do not manage this employee")
        return employee

    # ------------------------------------------------------------------
    # Weekly schedule
    # ------------------------------------------------------------------

    @staticmethod
    def get_weekly_schedule(db: Session, user: User, employee_id: int) -> List[Dict[str, Any]]:
        employee = ScheduleService.get_owned_employee(db, user, employee_id)
        return [entry.to_dict() for entry in employee.schedule]

    @staticmethod
    def replace_weekly_schedule(
            db: Session,
            user: User,
            employee_id: int,
            entries: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Replace the whole week. Exactly one entry per weekday is required,
        working days need open_time < close_time.
        """
        employee = ScheduleService.get_owned_employee(db, user, employee_id)

        days = sorted(entry["day_of_week"] for entry in entries)
        if days != list(range(DAYS_IN_WEEK)):
            raise ValidationError("Schedule needs exactly one entry for each day_of_week 0-6")

        for entry in entries:
            if entry.get("is_day_off"):
                continue
            open_time: Optional[time] = entry.get("open_time")
            close_time: Optional[time] = entry.get("close_time")
            if open_time is None or close_time is None or open_time >= close_time:
                raise ValidationError(
                    f"Day {entry['day_of_week']}: open_time must be before close_time"
                )

        try:
            db.query(EmployeeSchedule).filter(EmployeeSchedule.employee_id == employee.id).delete()
            db.add_all([
                EmployeeSchedule(
                    employee_id=employee.id,
                    day_of_week=entry["day_of_week"],
                    open_time=entry.get("open_time"),
                    close_time=entry.get("close_time"),
                    is_day_off=bool(entry.get("is_day_off")),
                )
                for entry in entries
            ])
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(employee)
        logger.info(f"Saved weekly schedule for employee {employee.id}")
        return [entry.to_dict() for entry in employee.schedule]

    # ------------------------------------------------------------------
    # Salon holidays
    # ------------------------------------------------------------------

    @staticmethod
    def list_holidays(db: Session, user: User, salon_id: Optional[int] = None) -> List[Dict[str, Any]]:
        salon = ScheduleService.get_owned_salon(db, user, salon_id)
        return [holiday.to_dict() for holiday in salon.holidays]

    @staticmethod
    def _find_holiday(db: Session, salon_id: int, day: date) -> Optional[SalonHoliday]:
        return db.query(SalonHoliday).filter(
            SalonHoliday.salon_id == salon_id,
            SalonHoliday.date == day
        ).first()

    @staticmethod
    def upsert_holiday(
            db: Session,
            user: User,
            day: date,
            reason: Optional[str] = None,
            salon_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """One holiday per salon and date; saving an existing date updates its reason"""
        salon = ScheduleService.get_owned_salon(db, user, salon_id)
        holiday = ScheduleService._find_holiday(db, salon.id, day)

        try:
            if holiday:
                holiday.reason = reason
            else:
                holiday = SalonHoliday(salon_id=salon.id, date=day, reason=reason)
                db.add(holiday)
            db.commit()
        except IntegrityError:
            # A concurrent request inserted the same date first
            db.rollback()
            holiday = ScheduleService._find_holiday(db, salon.id, day)
            if holiday is None:
                raise
            logger.info(f"Holiday {day.isoformat()} of salon {salon.id} already saved, updating its reason")
            try:
                holiday.reason = reason
                db.commit()
            except Exception:
                db.rollback()
                raise
        except Exception:
            db.rollback()
            raise

        db.refresh(holiday)
        logger.info(f"Salon {salon.id} closed on {day.isoformat()}")
        return holiday.to_dict()

    @staticmethod
    def delete_holiday(db: Session, user: User, holiday_id: int) -> None:
        holiday = db.query(SalonHoliday).filter(SalonHoliday.id == holiday_id).first()
        if not holiday:
            raise NotFoundError(f"Holiday {holiday_id} not found")
        ScheduleService.get_owned_salon(db, user, holiday.salon_id)

        db.delete(holiday)
        db.commit()

    # ------------------------------------------------------------------
    # Vacations
    # ------------------------------------------------------------------

    @staticmethod
    def list_vacations(db: Session, user: User, salon_id: Optional[int] = None) -> List[Dict[str, Any]]:
        salon = ScheduleService.get_owned_salon(db, user, salon_id)
        vacations = db.query(EmployeeVacation).join(Employee).filter(
            Employee.salon_id == salon.id
        ).order_by(EmployeeVacation.start_date).all()
        return [vacation.to_dict() for vacation in vacations]

    @staticmethod
    def add_vacation(
            db: Session,
            user: User,
            employee_id: int,
            start_date: date,
            end_date: date,
            reason: Optional[str] = None
    ) -> Dict[str, Any]:
        employee = ScheduleService.get_owned_employee(db, user, employee_id)
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        vacation = EmployeeVacation(
            employee_id=employee.id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )
        db.add(vacation)
        db.commit()
        db.refresh(vacation)

        logger.info(
            f"Vacation {vacation.id} for employee {employee.id}: "
            f"{start_date.isoformat()}..{end_date.isoformat()}"
        )
        return vacation.to_dict()

    @staticmethod
    def update_vacation(
            db: Session,
            user: User,
            vacation_id: int,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            reason: Optional[str] = None
    ) -> Dict[str, Any]:
        vacation = ScheduleService._get_owned_vacation(db, user, vacation_id)

        new_start = start_date or vacation.start_date
        new_end = end_date or vacation.end_date
        if new_start > new_end:
            raise ValidationError("start_date must not be after end_date")

        vacation.start_date = new_start
        vacation.end_date = new_end
        if reason is not None:
            vacation.reason = reason
        db.commit()
        db.refresh(vacation)
        return vacation.to_dict()

    @staticmethod
    def delete_vacation(db: Session, user: User, vacation_id: int) -> None:
        vacation = ScheduleService._get_owned_vacation(db, user, vacation_id)
        db.delete(vacation)
        db.commit()

    @staticmethod
    def _get_owned_vacation(db: Session, user: User, vacation_id: int) -> EmployeeVacation:
        vacation = db.query(EmployeeVacation).filter(EmployeeVacation.id == vacation_id).first()
        if not vacation:
            raise NotFoundError(f"Vacation {vacation_id} not found")
        ScheduleService.get_owned_employee(db, user, vacation.employee_id)
        return vacation

    # ------------------------------------------------------------------
    # Time off (part of a day)
    # ------------------------------------------------------------------

    @staticmethod
    def list_time_off(
            db: Session,
            user: User,
            employee_id: Optional[int] = None,
            salon_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        query = db.query(EmployeeTimeOff).join(Employee)
        if employee_id is not None:
            employee = ScheduleService.get_owned_employee(db, user, employee_id)
            query = query.filter(EmployeeTimeOff.employee_id == employee.id)
        else:
            salon = ScheduleService.get_owned_salon(db, user, salon_id)
            query = query.filter(Employee.salon_id == salon.id)

        blocks = query.order_by(EmployeeTimeOff.date, EmployeeTimeOff.start_time).all()
        return [block.to_dict() for block in blocks]

    @staticmethod
    def add_time_off(
            db: Session,
            user: User,
            employee_id: int,
            day: date,
            start_time: time,
            end_time: time,
            reason: Optional[str] = None
    ) -> Dict[str, Any]:
        employee = ScheduleService.get_owned_employee(db, user, employee_id)
        if start_time >= end_time:
            raise ValidationError("start_time must be before end_time")

        block = EmployeeTimeOff(
            employee_id=employee.id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )
        db.add(block)
        db.commit()
        db.refresh(block)
        return block.to_dict()

    @staticmethod
    def delete_time_off(db: Session, user: User, time_off_id: int) -> None:
        block = db.query(EmployeeTimeOff).filter(EmployeeTimeOff.id == time_off_id).first()
        if not block:
            raise NotFoundError(f"Time off {time_off_id} not found")
        ScheduleService.get_owned_employee(db, user, block.employee_id)

        db.delete(block)
        db.commit()
