"""Wall clock in the salon's timezone"""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from salon_booking.config.settings import get_settings


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Naive datetime for "now" in tz_name (default timezone when None)"""
    tz = ZoneInfo(tz_name or get_settings().DEFAULT_TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None)
