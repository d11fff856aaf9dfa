# ===== salon_booking/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, Time, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from salon_booking.models.base import Base


class EmployeeSchedule(Base):
    """Weekly working hours, one row per employee and weekday"""
    __tablename__ = "employee_schedules"
    __table_args__ = (
        UniqueConstraint("employee_id", "day_of_week", name="uq_employee_schedule_day"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Monday, 6=Sunday
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    is_day_off = Column(Boolean, default=False, nullable=False)

    employee = relationship("Employee", back_populates="schedule")

    def to_dict(self):
        return {
            "day_of_week": self.day_of_week,
            "open_time": self.open_time.strftime("%H:%M") if self.open_time else None,
            "close_time": self.close_time.strftime("%H:%M") if self.close_time else None,
            "is_day_off": self.is_day_off,
        }


class EmployeeVacation(Base):
    """Whole days off, start_date..end_date inclusive"""
    __tablename__ = "employee_vacations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)  # "Vacation", "Sick leave", etc.

    employee = relationship("Employee", back_populates="vacations")

    def covers(self, day) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee.name if self.employee else None,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "reason": self.reason,
        }


class EmployeeTimeOff(Base):
    """Part of a single day blocked for an employee (break, errand)"""
    __tablename__ = "employee_time_off"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(String(255), nullable=True)

    employee = relationship("Employee", back_populates="time_off")

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "reason": self.reason,
        }
