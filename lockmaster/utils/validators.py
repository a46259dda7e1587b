# =======================================================================================
# lockmaster/utils/validators.py - Validation Helpers
# =======================================================================================
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional
from .clock import as_utc
from .exceptions import ValidationFailedError
from ..models.enums import WEEKDAYS, DATED_SCHEDULE_TYPES

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ScheduleValidator:
    """Write-time checks for access schedules; evaluation assumes these passed."""

    @staticmethod
    def validate_time_slot(start_time: str, end_time: str) -> bool:
        """Both ends must be HH:MM and the slot must not span midnight."""
        for value in (start_time, end_time):
            if not isinstance(value, str) or not _HHMM.match(value):
                raise ValidationFailedError(f"Invalid time '{value}', expected HH:MM")
        if start_time > end_time:
            raise ValidationFailedError(
                f"Time slot {start_time}-{end_time} ends before it starts"
            )
        return True

    @staticmethod
    def validate_days(days: Iterable[str]) -> bool:
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValidationFailedError(f"Unknown weekday(s): {', '.join(unknown)}")
        return True

    @staticmethod
    def validate_date_range(schedule_type: str, start: Optional[date], end: Optional[date]) -> bool:
        if schedule_type in DATED_SCHEDULE_TYPES:
            if start is None or end is None:
                raise ValidationFailedError(
                    f"A {schedule_type} schedule needs both start_date and end_date"
                )
        if start is not None and end is not None and start > end:
            raise ValidationFailedError("end_date must not be before start_date")
        return True

    @classmethod
    def validate(cls, fields: Dict[str, Any]) -> bool:
        """Validate a full (merged) schedule field set."""
        cls.validate_date_range(
            fields.get("schedule_type", "recurring"),
            fields.get("start_date"),
            fields.get("end_date"),
        )
        cls.validate_days(fields.get("days_of_week") or [])
        for slot in fields.get("time_slots") or []:
            cls.validate_time_slot(slot["start_time"], slot["end_time"])
        return True


class CredentialValidator:
    """Write-time checks for credentials."""

    @staticmethod
    def validate_validity_window(valid_from: Optional[datetime], valid_until: Optional[datetime]) -> bool:
        if valid_from is None or valid_until is None:
            return True
        if as_utc(valid_until) < as_utc(valid_from):
            raise ValidationFailedError("valid_until must not be before valid_from")
        return True

    @staticmethod
    def validate_value(credential_type: str, value: Optional[str]) -> bool:
        if not value:
            raise ValidationFailedError(f"A {credential_type} credential needs a value")
        if "pin" in credential_type and not (value.isdigit() and 4 <= len(value) <= 8):
            raise ValidationFailedError("PIN codes must be 4 to 8 digits")
        return True
