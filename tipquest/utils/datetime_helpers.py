"""
Calendar day helpers

Shift days and "today" must be computed in the same zone or a late shift
lands on the wrong day and breaks a streak.

RULES:
- Day identity uses TIPQUEST_TIMEZONE
- Aware datetimes are converted to that zone before taking the date
- Naive datetimes are taken as already local
"""

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tipquest import config

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def get_local_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve the timezone used for calendar days

    Args:
        tz_name: IANA timezone name (defaults to TIPQUEST_TIMEZONE)

    Returns:
        ZoneInfo, UTC when the name is unknown
    """
    tz_name = tz_name or config.TIPQUEST_TIMEZONE
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def local_today(tz_name: Optional[str] = None) -> date:
    """Today's calendar date in the configured timezone"""
    return datetime.now(get_local_timezone(tz_name)).date()


def to_local_date(dt: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar day of a datetime in the configured timezone"""
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(get_local_timezone(tz_name)).date()
