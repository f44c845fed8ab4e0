from datetime import date, datetime
from zoneinfo import ZoneInfo

from core.config import settings

APP_TZ = ZoneInfo(settings.TIMEZONE)

def get_current_time() -> datetime:
    """Returns the current time in the configured zone."""
    return datetime.now(APP_TZ)

def current_date() -> date:
    """Today's calendar date, the reference day for streaks."""
    return get_current_time().date()
