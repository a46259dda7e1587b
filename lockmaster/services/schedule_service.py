# =======================================================================================
# lockmaster/services/schedule_service.py - Access Schedule Service
# =======================================================================================
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from ..models.enums import ALL, WEEKDAYS
from ..models.schemas import (
    ListResponse, ScheduleCreate, ScheduleEvaluation, ScheduleRecord, ScheduleUpdate,
    ScheduleView,
)
from ..utils.clock import portal_now, to_portal
from ..utils.exceptions import ValidationFailedError
from ..utils.validators import ScheduleValidator
from .access_control import evaluate_schedule
from .entity_client import Entities
from .filtering import filter_schedules
from .lock_service import lock_label
from .user_service import display_name

logger = logging.getLogger(__name__)


def days_label(days) -> str:
    if not days:
        return "All days"
    ordered = [d for d in WEEKDAYS if d in days]
    return ", ".join(d.capitalize() for d in ordered)


class ScheduleService:
    """Time-window policies for a user on a lock."""

    @staticmethod
    def _check_references(entities: Entities, fields: Dict[str, Any]):
        credential_id = fields.get("credential_id")
        if not credential_id:
            return
        credential = entities.credentials.find(credential_id)
        if credential is None:
            raise ValidationFailedError(f"Credential {credential_id} does not exist")
        if credential.user_id != fields.get("user_id") or credential.lock_id != fields.get("lock_id"):
            raise ValidationFailedError("Credential belongs to a different user or lock")

    def list_schedules(self, entities: Entities, search: Optional[str] = None,
                       schedule_type: str = ALL, status: str = ALL, user: str = ALL,
                       lock: str = ALL) -> ListResponse[ScheduleView]:
        schedules = entities.schedules.list("-created_date")
        users = {u.id: u for u in entities.users.list()}
        locks = {item.id: item for item in entities.locks.list()}
        filtered = filter_schedules(schedules, search, schedule_type, status, user, lock)
        items = [
            ScheduleView(
                **s.model_dump(),
                user_name=display_name(users.get(s.user_id)),
                lock_name=lock_label(locks.get(s.lock_id)),
                days_label=days_label(s.days_of_week),
            )
            for s in filtered
        ]
        return ListResponse[ScheduleView](total=len(schedules), count=len(items), items=items)

    def get_schedule(self, entities: Entities, schedule_id: str) -> ScheduleRecord:
        return entities.schedules.get(schedule_id)

    def create_schedule(self, entities: Entities, request: ScheduleCreate) -> ScheduleRecord:
        fields = request.model_dump()
        ScheduleValidator.validate(fields)
        self._check_references(entities, fields)
        fields["use_count"] = 0
        return entities.schedules.create(fields)

    def update_schedule(self, entities: Entities, schedule_id: str,
                        request: ScheduleUpdate) -> ScheduleRecord:
        current = entities.schedules.get(schedule_id)
        fields = request.model_dump(exclude_unset=True)
        merged = {**current.model_dump(), **fields}
        ScheduleValidator.validate(merged)
        if {"credential_id", "user_id", "lock_id"} & fields.keys():
            self._check_references(entities, merged)
        return entities.schedules.update(schedule_id, fields)

    def delete_schedule(self, entities: Entities, schedule_id: str) -> None:
        entities.schedules.delete(schedule_id)

    def evaluate(self, entities: Entities, schedule_id: str,
                 at: Optional[datetime] = None) -> ScheduleEvaluation:
        """Dry run: no use is counted and nothing is logged."""
        schedule = entities.schedules.get(schedule_id)
        now = to_portal(at) if at is not None else portal_now()
        decision = evaluate_schedule(schedule, now)
        return ScheduleEvaluation(
            granted=decision.granted, reason=decision.reason,
            schedule_id=schedule.id, evaluated_at=now,
        )
