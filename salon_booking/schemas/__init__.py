# salon_booking/schemas/__init__.py
from .appointment import (
    AppointmentStatusValue,
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentResponse
)

from .availability import SlotResponse

from .schedule import (
    ScheduleEntry,
    WeeklyScheduleUpdate,
    ScheduleEntryResponse,
    HolidayCreate,
    HolidayResponse,
    VacationCreate,
    VacationUpdate,
    VacationResponse,
    TimeOffCreate,
    TimeOffResponse
)
