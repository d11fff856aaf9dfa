# salon_booking/core/exceptions.py
"""Domain errors raised by the service layer.

Every error carries a stable machine-readable ``code`` so clients can react to
specific cases (the booking screen refreshes its slot list on ``SLOT_TAKEN``)
without parsing the message.
"""
from fastapi import HTTPException, status


class BookingError(Exception):
    """Base class for errors the API reports to the caller"""

    code = "BOOKING_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"code": self.code, "message": self.message},
        )


class ValidationError(BookingError):
    """Missing or inconsistent input, rejected before any availability work"""
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(BookingError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BookingError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class SlotTakenError(BookingError):
    """The window overlaps another booked appointment of the employee"""
    code = "SLOT_TAKEN"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "This slot was just taken, please pick another time"):
        super().__init__(message)


class SlotUnavailableError(BookingError):
    """The window is outside working hours, on a day off, vacation, holiday or time off"""
    code = "SLOT_UNAVAILABLE"
    status_code = status.HTTP_409_CONFLICT


class BookingLimitError(BookingError):
    code = "BOOKING_LIMIT"
    status_code = status.HTTP_409_CONFLICT


class InvalidStatusTransitionError(BookingError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailableError(BookingError):
    """Datastore or other infrastructure failure; safe for the client to retry"""
    code = "SERVICE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
