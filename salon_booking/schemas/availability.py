"""
Pydantic schemas for availability responses
"""
from pydantic import BaseModel


class SlotResponse(BaseModel):
    """One bookable window, times as HH:MM"""
    employee_id: int
    employee_name: str
    start_time: str
    end_time: str
