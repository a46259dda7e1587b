# =======================================================================================
# lockmaster/services/filtering.py - Search and Filter Composition
# =======================================================================================
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar
from ..models.enums import ALL
from ..utils.clock import as_utc

R = TypeVar("R")

Predicate = Callable[[Any], bool]


def matches_search(record: Any, term: Optional[str], fields: Sequence[str]) -> bool:
    """Case-insensitive substring match over the named fields; a blank term matches all."""
    if not term:
        return True
    needle = term.lower()
    for name in fields:
        value = getattr(record, name, None)
        if value is not None and needle in str(value).lower():
            return True
    return False


def matches_equals(value: Any, wanted: Optional[str]) -> bool:
    """Equality filter where None or the "all" sentinel means no constraint."""
    if wanted is None or wanted == ALL:
        return True
    return value == wanted


def battery_band(level: Optional[int]) -> Optional[str]:
    """low below 20, medium below 60, high otherwise; None when unknown."""
    if level is None:
        return None
    if level < 20:
        return "low"
    if level < 60:
        return "medium"
    return "high"


def matches_outcome(success: bool, outcome: Optional[str]) -> bool:
    if outcome == "success":
        return success is True
    if outcome == "failed":
        return success is False
    return True


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _day_end(value: date) -> datetime:
    return datetime.combine(value, time.max)


def matches_date_range(moment: datetime, date_from: Optional[date], date_to: Optional[date]) -> bool:
    """Inclusive on both ends; date bounds cover their whole day."""
    if date_from is not None:
        lower = date_from if isinstance(date_from, datetime) else _day_start(date_from)
        if as_utc(moment) < as_utc(lower):
            return False
    if date_to is not None:
        upper = date_to if isinstance(date_to, datetime) else _day_end(date_to)
        if as_utc(moment) > as_utc(upper):
            return False
    return True


def apply_filters(records: Iterable[R], search: Optional[str] = None,
                  search_fields: Sequence[str] = (),
                  criteria: Optional[Dict[str, Optional[str]]] = None,
                  extra: Sequence[Predicate] = ()) -> List[R]:
    """
    AND-combine the search term, the equality criteria (field -> wanted value)
    and any extra predicates. Source order is preserved.
    """
    criteria = criteria or {}
    result = []
    for record in records:
        if not matches_search(record, search, search_fields):
            continue
        if not all(matches_equals(getattr(record, f, None), w) for f, w in criteria.items()):
            continue
        if not all(p(record) for p in extra):
            continue
        result.append(record)
    return result


# ---------- page-specific criteria ----------

def filter_users(users, search=None, status=ALL, access_level=ALL, building=ALL):
    return apply_filters(
        users, search, ("full_name", "email", "apartment_unit"),
        {"status": status, "access_level": access_level, "building_id": building},
    )


def filter_locks(locks, search=None, status=ALL, lock_type=ALL, building=ALL, battery=ALL):
    extra = []
    if battery and battery != ALL:
        extra.append(lambda lock: battery_band(lock.battery_level) == battery)
    return apply_filters(
        locks, search, ("lock_name", "lock_id", "unit_number"),
        {"status": status, "lock_type": lock_type, "building_id": building},
        extra,
    )


def filter_credentials(credentials, search=None, credential_type=ALL, status=ALL, user=ALL, lock=ALL):
    return apply_filters(
        credentials, search, ("name", "credential_value"),
        {"credential_type": credential_type, "status": status, "user_id": user, "lock_id": lock},
    )


def filter_schedules(schedules, search=None, schedule_type=ALL, status=ALL, user=ALL, lock=ALL):
    return apply_filters(
        schedules, search, ("name",),
        {"schedule_type": schedule_type, "status": status, "user_id": user, "lock_id": lock},
    )


def filter_activity(activities, date_from=None, date_to=None, user=ALL, lock=ALL,
                    event_type=ALL, outcome=ALL):
    return apply_filters(
        activities, None, (),
        {"user_id": user, "lock_id": lock, "activity_type": event_type},
        [
            lambda a: matches_date_range(a.timestamp, date_from, date_to),
            lambda a: matches_outcome(a.success, outcome),
        ],
    )
