"""
Pydantic schemas for schedule administration
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date as Date, time


class ScheduleEntry(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Monday, 6=Sunday")
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    is_day_off: bool = False


class WeeklyScheduleUpdate(BaseModel):
    schedule: List[ScheduleEntry] = Field(..., min_length=7, max_length=7)


class ScheduleEntryResponse(BaseModel):
    day_of_week: int
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    is_day_off: bool


class HolidayCreate(BaseModel):
    date: Date
    reason: Optional[str] = Field(None, max_length=255)
    salon_id: Optional[int] = None


class HolidayResponse(BaseModel):
    id: int
    salon_id: int
    date: str
    reason: Optional[str] = None


class VacationCreate(BaseModel):
    employee_id: int
    start_date: Date
    end_date: Date
    reason: Optional[str] = Field(None, max_length=255)


class VacationUpdate(BaseModel):
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    reason: Optional[str] = Field(None, max_length=255)


class VacationResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: Optional[str] = None
    start_date: str
    end_date: str
    reason: Optional[str] = None


class TimeOffCreate(BaseModel):
    employee_id: int
    date: Date
    start_time: time
    end_time: time
    reason: Optional[str] = Field(None, max_length=255)


class TimeOffResponse(BaseModel):
    id: int
    employee_id: int
    date: str
    start_time: str
    end_time: str
    reason: Optional[str] = None
