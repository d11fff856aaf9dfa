# ============================================================================
# FILE: salon_booking/api/v1/schedule.py
# Working hours, holidays, vacations and time off - salon owner only
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import List, Optional

from salon_booking.api.dependencies import require_provider
from salon_booking.config.database import get_db
from salon_booking.core.exceptions import BookingError
from salon_booking.models.user import User
from salon_booking.schemas.schedule import (
    HolidayCreate,
    HolidayResponse,
    ScheduleEntryResponse,
    TimeOffCreate,
    TimeOffResponse,
    VacationCreate,
    VacationResponse,
    VacationUpdate,
    WeeklyScheduleUpdate,
)
from salon_booking.services.availability.availability_cache import AvailabilityCache, get_availability_cache
from salon_booking.services.schedule.schedule_service import ScheduleService

router = APIRouter(prefix="/schedule", tags=["schedule"])


# ============================================================================
# Weekly schedule
# ============================================================================

@router.get("/employees/{employee_id}", response_model=List[ScheduleEntryResponse])
async def get_employee_schedule(
        employee_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    try:
        return ScheduleService.get_weekly_schedule(db, current_user, employee_id)
    except BookingError as e:
        raise e.to_http()


@router.put("/employees/{employee_id}", response_model=List[ScheduleEntryResponse])
async def replace_employee_schedule(
        data: WeeklyScheduleUpdate,
        employee_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    """
    Replace the employee's whole week.
    Send seven entries, one per day_of_week (0=Monday .. 6=Sunday).
    """
    try:
        result = ScheduleService.replace_weekly_schedule(
            db, current_user, employee_id, [entry.model_dump() for entry in data.schedule]
        )
        await cache.invalidate()
        return result
    except BookingError as e:
        raise e.to_http()


# ============================================================================
# Salon holidays
# ============================================================================

@router.get("/holidays", response_model=List[HolidayResponse])
async def list_holidays(
        salon_id: Optional[int] = Query(None, description="Defaults to your first salon"),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    try:
        return ScheduleService.list_holidays(db, current_user, salon_id)
    except BookingError as e:
        raise e.to_http()


@router.post("/holidays", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def add_holiday(
        data: HolidayCreate,
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    """Close the salon for a day. Saving an existing date updates its reason."""
    try:
        result = ScheduleService.upsert_holiday(
            db, current_user, data.date, reason=data.reason, salon_id=data.salon_id
        )
        await cache.invalidate()
        return result
    except BookingError as e:
        raise e.to_http()


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
        holiday_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    try:
        ScheduleService.delete_holiday(db, current_user, holiday_id)
        await cache.invalidate()
    except BookingError as e:
        raise e.to_http()


# ============================================================================
# Vacations
# ============================================================================

@router.get("/vacations", response_model=List[VacationResponse])
async def list_vacations(
        salon_id: Optional[int] = Query(None),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    try:
        return ScheduleService.list_vacations(db, current_user, salon_id)
    except BookingError as e:
        raise e.to_http()


@router.post("/vacations", response_model=VacationResponse, status_code=status.HTTP_201_CREATED)
async def add_vacation(
        data: VacationCreate,
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    try:
        result = ScheduleService.add_vacation(
            db,
            current_user,
            employee_id=data.employee_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason
        )
        await cache.invalidate()
        return result
    except BookingError as e:
        raise e.to_http()


@router.put("/vacations/{vacation_id}", response_model=VacationResponse)
async def update_vacation(
        data: VacationUpdate,
        vacation_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    try:
        result = ScheduleService.update_vacation(
            db,
            current_user,
            vacation_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason
        )
        await cache.invalidate()
        return result
    except BookingError as e:
        raise e.to_http()


@router.delete("/vacations/{vacation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vacation(
        vacation_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    try:
        ScheduleService.delete_vacation(db, current_user, vacation_id)
        await cache.invalidate()
    except BookingError as e:
        raise e.to_http()


# ============================================================================
# Time off
# ============================================================================

@router.get("/time-off", response_model=List[TimeOffResponse])
async def list_time_off(
        employee_id: Optional[int] = Query(None),
        salon_id: Optional[int] = Query(None),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    try:
        return ScheduleService.list_time_off(db, current_user, employee_id=employee_id, salon_id=salon_id)
    except BookingError as e:
        raise e.to_http()


@router.post("/time-off", response_model=TimeOffResponse, status_code=status.HTTP_201_CREATED)
async def add_time_off(
        data: TimeOffCreate,
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    """Block part of a day (break, errand) for one employee"""
    try:
        result = ScheduleService.add_time_off(
            db,
            current_user,
            employee_id=data.employee_id,
            day=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=data.reason
        )
        await cache.invalidate()
        return result
    except BookingError as e:
        raise e.to_http()


@router.delete("/time-off/{time_off_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_off(
        time_off_id: int = Path(..., gt=0),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    try:
        ScheduleService.delete_time_off(db, current_user, time_off_id)
        await cache.invalidate()
    except BookingError as e:
        raise e.to_http()
