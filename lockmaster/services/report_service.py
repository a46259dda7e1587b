# =======================================================================================
# lockmaster/services/report_service.py - Activity Reports and Audit Trail
# =======================================================================================
import csv
import io
import logging
from datetime import date
from typing import Dict, List, Optional
from ..models.enums import ALL
from ..models.schemas import ActivityCreate, ActivityRecord, ActivityView, ListResponse
from ..utils.clock import utcnow
from .entity_client import Entities
from .filtering import filter_activity
from .lock_service import lock_label
from .user_service import display_name

logger = logging.getLogger(__name__)

SYSTEM_USER = "System/Unknown"

CSV_COLUMNS = [
    "timestamp", "activity_type", "user_name", "lock_name", "method", "success", "details",
]


class ReportService:
    """Append-only activity log and the filtered report built from it."""

    @staticmethod
    def to_views(activities: List[ActivityRecord], user_names: Dict[str, str],
                 lock_names: Dict[str, str]) -> List[ActivityView]:
        return [
            ActivityView(
                **a.model_dump(),
                user_name=user_names.get(a.user_id, SYSTEM_USER),
                lock_name=lock_names.get(a.lock_id, lock_label(None)),
            )
            for a in activities
        ]

    @staticmethod
    def name_maps(entities: Entities):
        user_names = {u.id: display_name(u, SYSTEM_USER) for u in entities.users.list()}
        lock_names = {item.id: item.lock_name for item in entities.locks.list()}
        return user_names, lock_names

    def activity_report(self, entities: Entities, date_from: Optional[date] = None,
                        date_to: Optional[date] = None, user: str = ALL, lock: str = ALL,
                        event_type: str = ALL, outcome: str = ALL,
                        limit: Optional[int] = None) -> ListResponse[ActivityView]:
        activities = entities.activity.list("-timestamp")
        filtered = filter_activity(activities, date_from, date_to, user, lock, event_type, outcome)
        if limit is not None:
            filtered = filtered[:limit]
        user_names, lock_names = self.name_maps(entities)
        items = self.to_views(filtered, user_names, lock_names)
        return ListResponse[ActivityView](total=len(activities), count=len(items), items=items)

    def export_csv(self, report: ListResponse[ActivityView]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for item in report.items:
            row = item.model_dump()
            row["timestamp"] = item.timestamp.isoformat()
            row["success"] = "yes" if item.success else "no"
            writer.writerow(row)
        return buffer.getvalue()

    def create_activity(self, entities: Entities, request: ActivityCreate) -> ActivityRecord:
        fields = request.model_dump()
        fields["timestamp"] = fields.get("timestamp") or utcnow()
        record = entities.activity.create(fields)
        if not record.success:
            logger.warning("Recorded failed %s on lock %s", record.activity_type, record.lock_id)
        return record
