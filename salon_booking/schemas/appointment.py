"""
Pydantic schemas for appointment requests and responses
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date as Date, time
from enum import Enum


class AppointmentStatusValue(str, Enum):
    booked = "booked"
    completed = "completed"
    cancelled = "cancelled"


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class AppointmentCreate(BaseModel):
    """Book one slot returned by /appointments/available"""
    employee_id: int = Field(..., gt=0)
    service_id: int = Field(..., gt=0)
    date: Date
    start_time: time
    end_time: Optional[time] = Field(None, description="Checked against service + add-ons duration")
    addons: List[int] = Field(default_factory=list)

    @field_validator("addons")
    @classmethod
    def validate_addons(cls, v):
        if any(addon_id <= 0 for addon_id in v):
            raise ValueError("Add-on ids must be positive")
        return v


class ProviderAppointmentCreate(AppointmentCreate):
    """Staff panel booking made by the salon owner for one of the clients"""
    client_id: int = Field(..., gt=0)


class AppointmentUpdate(BaseModel):
    """
    Reschedule and/or change status.
    Send only what you want to change.
    """
    date: Optional[Date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    addons: Optional[List[int]] = None
    status: Optional[AppointmentStatusValue] = None

    @model_validator(mode="after")
    def validate_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("Nothing to update")
        return self

    @property
    def moves_appointment(self) -> bool:
        return any(
            value is not None
            for value in (self.date, self.start_time, self.end_time, self.addons)
        )


# ============================================================================
# Response Schemas (for outgoing data)
# ============================================================================

class AppointmentResponse(BaseModel):
    id: int
    salon_id: int
    employee_id: int
    employee_name: Optional[str] = None
    service_id: int
    service_name: Optional[str] = None
    client_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    addons: List[int] = Field(default_factory=list)
    price: Optional[float] = None
    service_price: Optional[float] = None
    addon_price: Optional[float] = None
    created_at: Optional[str] = None
    cancelled_at: Optional[str] = None
