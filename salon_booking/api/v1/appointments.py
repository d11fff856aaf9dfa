# ============================================================================
# FILE: salon_booking/api/v1/appointments.py
# Availability reads, client bookings and staff panel bookings - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from datetime import date
from typing import Callable, List, Optional
import logging

from salon_booking.api.dependencies import get_clock, get_current_user, require_provider
from salon_booking.config.database import get_db
from salon_booking.config.redis import RedisKeys
from salon_booking.core.exceptions import BookingError, SlotTakenError, ValidationError
from salon_booking.models.user import User
from salon_booking.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusValue,
    AppointmentUpdate,
    ProviderAppointmentCreate,
)
from salon_booking.schemas.availability import SlotResponse
from salon_booking.services.appointment.appointment_query_service import AppointmentQueryService
from salon_booking.services.appointment.booking_writer import BookingWriter
from salon_booking.services.availability.availability_cache import AvailabilityCache, get_availability_cache
from salon_booking.services.availability.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])

ANY_EMPLOYEE = "any"


def parse_employee_id(value: Optional[str]) -> Optional[int]:
    """None for "any" (or missing), else a positive employee id"""
    if value is None or value == "" or value.lower() == ANY_EMPLOYEE:
        return None
    try:
        employee_id = int(value)
    except ValueError:
        raise ValidationError(f"employee_id must be a number or '{ANY_EMPLOYEE}'")
    if employee_id <= 0:
        raise ValidationError("employee_id must be positive")
    return employee_id


def _unavailable(message: str = "Availability is temporarily unavailable") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"code": "SERVICE_UNAVAILABLE", "message": message}
    )


# ============================================================================
# Availability (no authentication)
# ============================================================================

@router.get("/available-days", response_model=List[str])
async def get_available_days(
        service_id: int = Query(..., gt=0),
        year: int = Query(..., description="Calendar year"),
        month: int = Query(..., description="1-12"),
        employee_id: Optional[str] = Query(None, description="Employee id or 'any'"),
        addons: List[int] = Query([], description="Add-on ids extending the visit"),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache),
        clock: Callable = Depends(get_clock)
):
    """
    Days of the month with at least one bookable slot, as ISO dates.
    Past days are never returned.
    """
    try:
        parsed_employee_id = parse_employee_id(employee_id)
        service = AvailabilityService.get_service(db, service_id)
        now = clock(service.salon.timezone if service.salon else None)

        return await cache.get_or_compute(
            RedisKeys.AVAILABLE_DAYS,
            {
                "service_id": service_id,
                "year": year,
                "month": month,
                "employee_id": parsed_employee_id or ANY_EMPLOYEE,
                "addons": ",".join(str(a) for a in sorted(set(addons))) or "-",
                "today": now.date().isoformat(),
            },
            lambda: AvailabilityService.get_available_days(
                db=db,
                service_id=service_id,
                year=year,
                month=month,
                employee_id=parsed_employee_id,
                addon_ids=addons,
                now=now
            )
        )

    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while computing days: {e}", exc_info=True)
        raise _unavailable()


@router.get("/available", response_model=List[SlotResponse])
async def get_available_slots(
        service_id: int = Query(..., gt=0),
        day: date = Query(..., alias="date", description="YYYY-MM-DD"),
        employee_id: Optional[str] = Query(None, description="Employee id or 'any'"),
        addons: List[int] = Query([], description="Add-on ids extending the visit"),
        total_duration: Optional[int] = Query(None, gt=0, description="Overrides service + add-ons"),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache),
        clock: Callable = Depends(get_clock)
):
    """
    Bookable slots for one day: {employee_id, employee_name, start_time, end_time}
    sorted by start time.
    """
    try:
        parsed_employee_id = parse_employee_id(employee_id)
        service = AvailabilityService.get_service(db, service_id)
        now = clock(service.salon.timezone if service.salon else None)

        # Slots for today shrink as time passes, so "now" is part of the key
        return await cache.get_or_compute(
            RedisKeys.AVAILABLE_SLOTS,
            {
                "service_id": service_id,
                "date": day.isoformat(),
                "employee_id": parsed_employee_id or ANY_EMPLOYEE,
                "addons": ",".join(str(a) for a in sorted(set(addons))) or "-",
                "total_duration": total_duration or "-",
                "now": now.strftime("%Y-%m-%dT%H:%M"),
            },
            lambda: AvailabilityService.get_available_slots(
                db=db,
                service_id=service_id,
                day=day,
                employee_id=parsed_employee_id,
                addon_ids=addons,
                total_duration=total_duration,
                now=now
            )
        )

    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while computing slots: {e}", exc_info=True)
        raise _unavailable()


# ============================================================================
# Bookings (JWT)
# ============================================================================

BOOKING_UNAVAILABLE = "Booking is temporarily unavailable, please retry"


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
        data: AppointmentCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache),
        clock: Callable = Depends(get_clock)
):
    """
    Book a slot.
    409 with code SLOT_TAKEN when someone else booked an overlapping time first;
    the client should reload /available and let the user pick again.
    """
    try:
        service = AvailabilityService.get_service(db, data.service_id)
        appointment = BookingWriter.create_appointment(
            db=db,
            client=current_user,
            employee_id=data.employee_id,
            service_id=data.service_id,
            day=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            addon_ids=data.addons,
            now=clock(service.salon.timezone if service.salon else None)
        )
        await cache.invalidate()
        return AppointmentQueryService.serialize(appointment)

    except SlotTakenError as e:
        await cache.invalidate()
        raise e.to_http()
    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while booking: {e}", exc_info=True)
        raise _unavailable(BOOKING_UNAVAILABLE)


@router.post("/panel", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment_for_client(
        data: ProviderAppointmentCreate,
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache),
        clock: Callable = Depends(get_clock)
):
    """
    Staff panel: the salon owner books a slot for a client.
    Same SLOT_TAKEN / SLOT_UNAVAILABLE answers as a client booking.
    """
    try:
        service = AvailabilityService.get_service(db, data.service_id)
        appointment = BookingWriter.create_for_client(
            db=db,
            provider=current_user,
            client_id=data.client_id,
            employee_id=data.employee_id,
            service_id=data.service_id,
            day=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            addon_ids=data.addons,
            now=clock(service.salon.timezone if service.salon else None)
        )
        await cache.invalidate()
        return AppointmentQueryService.serialize(appointment)

    except SlotTakenError as e:
        await cache.invalidate()
        raise e.to_http()
    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while booking from panel: {e}", exc_info=True)
        raise _unavailable(BOOKING_UNAVAILABLE)


@router.get("/mine", response_model=List[AppointmentResponse])
async def list_my_appointments(
        status_filter: Optional[AppointmentStatusValue] = Query(None, alias="status"),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """Your appointments, newest first"""
    try:
        return AppointmentQueryService.list_for_client(
            db=db,
            user=current_user,
            status=status_filter.value if status_filter else None,
            skip=skip,
            limit=limit
        )
    except OperationalError as e:
        logger.error(f"Database unavailable while listing appointments: {e}", exc_info=True)
        raise _unavailable("Appointments are temporarily unavailable")


@router.get("/salon", response_model=List[AppointmentResponse])
async def list_salon_appointments(
        date_from: date = Query(..., description="YYYY-MM-DD, inclusive"),
        date_to: Optional[date] = Query(None, description="YYYY-MM-DD, inclusive; defaults to date_from"),
        employee_id: Optional[int] = Query(None, gt=0),
        status_filter: Optional[AppointmentStatusValue] = Query(None, alias="status"),
        salon_id: Optional[int] = Query(None, description="Defaults to your first salon"),
        current_user: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    """Salon calendar: appointments of every employee for a day or a date range"""
    try:
        return AppointmentQueryService.list_for_salon(
            db=db,
            user=current_user,
            date_from=date_from,
            date_to=date_to or date_from,
            employee_id=employee_id,
            status=status_filter.value if status_filter else None,
            salon_id=salon_id
        )
    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while loading salon calendar: {e}", exc_info=True)
        raise _unavailable("Appointments are temporarily unavailable")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
        appointment_id: int = Path(..., gt=0),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    try:
        return AppointmentQueryService.get_for_user(db, current_user, appointment_id)
    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while loading appointment {appointment_id}: {e}", exc_info=True)
        raise _unavailable("Appointments are temporarily unavailable")


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
        data: AppointmentUpdate,
        appointment_id: int = Path(..., gt=0),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache),
        clock: Callable = Depends(get_clock)
):
    """
    Reschedule (date/start_time/end_time/addons) and/or change status.
    Moving is checked exactly like a new booking, ignoring the appointment's
    own current time.
    """
    try:
        appointment = BookingWriter.get_manageable_appointment(db, current_user, appointment_id)

        if data.moves_appointment:
            service = appointment.service
            appointment = BookingWriter.reschedule_appointment(
                db=db,
                user=current_user,
                appointment_id=appointment_id,
                day=data.date,
                start_time=data.start_time,
                end_time=data.end_time,
                addon_ids=data.addons,
                now=clock(service.salon.timezone if service.salon else None)
            )

        if data.status is not None and data.status.value != appointment.status:
            appointment = BookingWriter.change_status(
                db=db,
                user=current_user,
                appointment_id=appointment_id,
                new_status=data.status.value
            )

        await cache.invalidate()
        return AppointmentQueryService.serialize(appointment)

    except SlotTakenError as e:
        await cache.invalidate()
        raise e.to_http()
    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while updating appointment {appointment_id}: {e}", exc_info=True)
        raise _unavailable(BOOKING_UNAVAILABLE)


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
        appointment_id: int = Path(..., gt=0),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        cache: AvailabilityCache = Depends(get_availability_cache)
):
    """Cancel a booked appointment; its time becomes available again"""
    try:
        appointment = BookingWriter.change_status(
            db=db,
            user=current_user,
            appointment_id=appointment_id,
            new_status=AppointmentStatusValue.cancelled.value
        )
        await cache.invalidate()
        return AppointmentQueryService.serialize(appointment)

    except BookingError as e:
        raise e.to_http()
    except OperationalError as e:
        logger.error(f"Database unavailable while cancelling appointment {appointment_id}: {e}", exc_info=True)
        raise _unavailable(BOOKING_UNAVAILABLE)
