# =======================================================================================
# lockmaster/services/dashboard_service.py - Dashboard Aggregates
# =======================================================================================
from typing import List, Optional
from ..config import config
from ..models.schemas import DashboardResponse, DashboardStats, LockRecord, SystemAlert
from .entity_client import Entities
from .report_service import ReportService


class DashboardService:
    """Counts, recent activity and alerts for the landing page."""

    def __init__(self, report_service: Optional[ReportService] = None):
        self.report_service = report_service or ReportService()

    # ---------- helpers ----------

    @staticmethod
    def low_battery_locks(locks: List[LockRecord], threshold: int) -> List[LockRecord]:
        return [
            lock for lock in locks
            if lock.battery_level is not None and lock.battery_level < threshold
        ]

    @staticmethod
    def offline_locks(locks: List[LockRecord]) -> List[LockRecord]:
        return [lock for lock in locks if lock.status == "offline"]

    def build_alerts(self, locks: List[LockRecord], threshold: int) -> List[SystemAlert]:
        alerts: List[SystemAlert] = []

        low = self.low_battery_locks(locks, threshold)
        if low:
            alerts.append(SystemAlert(
                type="warning",
                title="Low Battery Alert",
                message=f"{len(low)} lock(s) have battery below {threshold}%",
                count=len(low),
            ))

        offline = self.offline_locks(locks)
        if offline:
            alerts.append(SystemAlert(
                type="error",
                title="Offline Locks",
                message=f"{len(offline)} lock(s) are offline",
                count=len(offline),
            ))

        return alerts

    # ---------- summary ----------

    def get_stats(self, entities: Entities) -> DashboardStats:
        return DashboardStats(
            users=entities.users.count(),
            buildings=entities.buildings.count(),
            locks=entities.locks.count(),
            active_permissions=entities.permissions.count({"status": "active"}),
        )

    def get_dashboard(self, entities: Entities) -> DashboardResponse:
        recent = entities.activity.list("-timestamp", config.RECENT_ACTIVITY_LIMIT)
        user_names, lock_names = self.report_service.name_maps(entities)
        return DashboardResponse(
            stats=self.get_stats(entities),
            recent_activity=self.report_service.to_views(recent, user_names, lock_names),
            alerts=self.build_alerts(entities.locks.list(), config.LOW_BATTERY_THRESHOLD),
        )
