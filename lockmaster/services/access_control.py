# =======================================================================================
# lockmaster/services/access_control.py - Core Business Logic
# =======================================================================================
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from ..models.enums import (
    CredentialStatus, DATED_SCHEDULE_TYPES, WEEKDAYS, WEEKLY_SCHEDULE_TYPES,
)
from ..models.schemas import (
    AccessCheckRequest, AccessCheckResponse, AccessDecision, CredentialRecord,
    ScheduleRecord,
)
from ..utils.clock import as_utc, portal_now, to_portal, to_storage
from .entity_client import Entities

logger = logging.getLogger(__name__)

# lock statuses that refuse every unlock
UNAVAILABLE_LOCK_STATUSES = ("maintenance",)

# how each presentation method is recorded against a credential type;
# a physical key carries no digital credential
METHOD_CREDENTIAL_TYPES = {
    "keypad": ("pin", "one_time_pin"),
    "card": ("rfid_card", "rfid_fob"),
    "fingerprint": ("fingerprint",),
    "app": ("app_key",),
    "key": (),
}


def effective_credential_status(credential: CredentialRecord, now: datetime) -> CredentialStatus:
    """
    Read-time status of a credential.

    Stored inactive/revoked/expired win; a stored active credential reads as
    expired once now is strictly past valid_until. Nothing is written back.
    """
    if credential.status != "active":
        return credential.status
    if credential.valid_until is not None and as_utc(now) > as_utc(credential.valid_until):
        return "expired"
    return "active"


def weekday_name(moment: datetime) -> str:
    return WEEKDAYS[moment.weekday()]


def evaluate_schedule(schedule: ScheduleRecord, now: datetime,
                      uses: Optional[int] = None) -> AccessDecision:
    """
    Decide whether a schedule grants access at `now`.

    Aware instants are read on the property wall clock; naive values are
    taken as that wall clock already.

    `uses` is the number of times the schedule has already granted access;
    it defaults to the persisted use_count.
    """
    if schedule.status != "active":
        return AccessDecision(granted=False, reason="Schedule is inactive")

    now = to_portal(now)
    today = now.date()
    if schedule.schedule_type in DATED_SCHEDULE_TYPES:
        if schedule.start_date is None or schedule.end_date is None:
            return AccessDecision(granted=False, reason="Schedule has no date range")
        if not (schedule.start_date <= today <= schedule.end_date):
            return AccessDecision(
                granted=False,
                reason=f"Outside {schedule.start_date.isoformat()} - {schedule.end_date.isoformat()}",
            )

    if schedule.schedule_type in WEEKLY_SCHEDULE_TYPES and schedule.days_of_week:
        day = weekday_name(now)
        if day not in schedule.days_of_week:
            return AccessDecision(granted=False, reason=f"Not scheduled on {day}")

    if schedule.time_slots:
        clock = now.strftime("%H:%M")
        if not any(s.start_time <= clock <= s.end_time for s in schedule.time_slots):
            return AccessDecision(granted=False, reason=f"{clock} is outside every time slot")

    if schedule.max_uses is not None:
        used = schedule.use_count if uses is None else uses
        if used >= schedule.max_uses:
            return AccessDecision(granted=False, reason=f"Usage limit of {schedule.max_uses} reached")

    return AccessDecision(granted=True, reason="Within schedule")


def is_schedule_granted(schedule: ScheduleRecord, now: datetime, uses: Optional[int] = None) -> bool:
    return evaluate_schedule(schedule, now, uses).granted


class AccessControlService:
    """Handles the unlock decision pipeline and its audit trail."""

    @staticmethod
    def match_credential(credentials: List[CredentialRecord], value: str, method: str,
                         now: datetime) -> Tuple[Optional[CredentialRecord], str]:
        """Find a presented credential that is usable right now."""
        allowed_types = METHOD_CREDENTIAL_TYPES.get(method)
        candidates = [
            c for c in credentials
            if c.credential_value == value
            and (allowed_types is None or c.credential_type in allowed_types)
        ]
        if not candidates:
            return None, "Unknown credential"

        reason = "Credential not usable"
        for credential in candidates:
            status = effective_credential_status(credential, now)
            if status != "active":
                reason = f"Credential {status}"
                continue
            if credential.valid_from is not None and as_utc(now) < as_utc(credential.valid_from):
                reason = "Credential not yet valid"
                continue
            return credential, "Credential accepted"
        return None, reason

    @staticmethod
    def pick_schedule(schedules: List[ScheduleRecord], credential: Optional[CredentialRecord],
                      now: datetime) -> Tuple[bool, Optional[ScheduleRecord], str]:
        """
        OR across the pair's schedules. A pair without schedules is not time-restricted.
        Schedules bound to a different credential are ignored.
        """
        applicable = [
            s for s in schedules
            if s.credential_id is None or (credential is not None and s.credential_id == credential.id)
        ]
        if not schedules:
            return True, None, "No schedule restrictions"
        if not applicable:
            return False, None, "No schedule covers this credential"

        reason = "No active schedule"
        for schedule in applicable:
            decision = evaluate_schedule(schedule, now)
            if decision.granted:
                return True, schedule, decision.reason
            reason = decision.reason
        return False, None, reason

    def _log(self, entities: Entities, request: AccessCheckRequest, now: datetime,
             granted: bool, details: str) -> str:
        record = entities.activity.create({
            "activity_type": "unlock" if granted else "failed_attempt",
            "user_id": request.user_id,
            "lock_id": request.lock_id,
            "method": request.method,
            "timestamp": now,
            "success": granted,
            "details": details,
        })
        return record.id

    def _deny(self, entities: Entities, request: AccessCheckRequest, now: datetime,
              reason: str, credential_id: Optional[str] = None) -> AccessCheckResponse:
        activity_id = self._log(entities, request, now, False, reason)
        logger.info("Access denied user=%s lock=%s: %s", request.user_id, request.lock_id, reason)
        return AccessCheckResponse(
            granted=False, reason=reason, activity_id=activity_id, credential_id=credential_id
        )

    def process_access_request(self, entities: Entities, request: AccessCheckRequest) -> AccessCheckResponse:
        """
        Run an unlock attempt through the full pipeline:
        user status -> lock availability -> credential -> schedules,
        then count the use and write the audit record.
        """
        now = request.at or portal_now()

        user = entities.users.find(request.user_id)
        if user is None:
            return self._deny(entities, request, now, "Unknown user")
        if user.status != "active":
            return self._deny(entities, request, now, f"User {user.status}")

        lock = entities.locks.find(request.lock_id)
        if lock is None:
            return self._deny(entities, request, now, "Unknown lock")
        if lock.status in UNAVAILABLE_LOCK_STATUSES:
            return self._deny(entities, request, now, f"Lock under {lock.status}")

        credential = None
        if request.credential_value is not None:
            owned = entities.credentials.filter({"user_id": user.id, "lock_id": lock.id})
            credential, reason = self.match_credential(owned, request.credential_value, request.method, now)
            if credential is None:
                return self._deny(entities, request, now, reason)

        schedules = entities.schedules.filter({"user_id": user.id, "lock_id": lock.id})
        granted, schedule, reason = self.pick_schedule(schedules, credential, now)
        if not granted:
            return self._deny(entities, request, now, reason,
                              credential_id=credential.id if credential else None)

        # Grant access - count the use and log success
        if credential is not None:
            entities.credentials.update(credential.id, {"usage_count": credential.usage_count + 1})
        if schedule is not None:
            entities.schedules.update(schedule.id, {"use_count": schedule.use_count + 1})
        entities.locks.update(lock.id, {"last_activity": to_storage(now)})

        message = f"Access granted - {reason}"
        activity_id = self._log(entities, request, now, True, message)
        logger.info("Access granted user=%s lock=%s", user.id, lock.id)
        return AccessCheckResponse(
            granted=True,
            reason=reason,
            activity_id=activity_id,
            credential_id=credential.id if credential else None,
            schedule_id=schedule.id if schedule else None,
        )
