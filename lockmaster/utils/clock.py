# =======================================================================================
# lockmaster/utils/clock.py - Time Helpers
# =======================================================================================
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
from ..config import config


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC, the form DateTime columns hold."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def portal_now() -> datetime:
    """Current wall-clock time at the property."""
    return datetime.now(ZoneInfo(config.PORTAL_TIMEZONE))


def to_portal(value: datetime) -> datetime:
    """Property wall-clock reading of an instant; naive values already are one."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(config.PORTAL_TIMEZONE))
