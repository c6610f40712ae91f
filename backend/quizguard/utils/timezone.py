"""
Timezone helpers.

Timestamps are stored naive in the platform timezone (``settings.default_timezone``)
and formatted for display with ``settings.timezone_display_format``.
"""
from datetime import datetime
import pytz

from ..core.config import settings


def get_local_timezone():
    return pytz.timezone(settings.default_timezone)


def get_local_now() -> datetime:
    """Current time in the platform timezone"""
    return datetime.now(get_local_timezone())


def get_local_now_naive() -> datetime:
    """Current platform time without tzinfo, for database columns"""
    return get_local_now().replace(tzinfo=None)


def format_local_time(dt: datetime, format_str: str = None) -> str:
    """Format a datetime for display; naive values are taken as platform time"""
    tz = get_local_timezone()
    if dt.tzinfo is None:
        dt = tz.localize(dt)

    return dt.astimezone(tz).strftime(format_str or settings.timezone_display_format)


def get_timezone_info() -> dict:
    now = get_local_now()
    return {
        "timezone": settings.default_timezone,
        "offset": now.strftime("%z"),
        "current_time": format_local_time(now)
    }
