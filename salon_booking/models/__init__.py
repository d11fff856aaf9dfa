# salon_booking/models/__init__.py
from .base import Base
from .user import User, UserRole
from .salon import Salon, SalonHoliday
from .employee import Employee, employee_services
from .service import Service, ServiceAddon
from .availability import EmployeeSchedule, EmployeeVacation, EmployeeTimeOff
from .appointment import Appointment, AppointmentStatus, appointment_addons

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Salon",
    "SalonHoliday",
    "Employee",
    "employee_services",
    "Service",
    "ServiceAddon",
    "EmployeeSchedule",
    "EmployeeVacation",
    "EmployeeTimeOff",
    "Appointment",
    "AppointmentStatus",
    "appointment_addons",
]
