# =======================================================================================
# lockmaster/services/__init__.py - Services Package
# =======================================================================================
from .access_control import AccessControlService
from .building_service import BuildingService, PermissionService
from .credential_service import CredentialService
from .dashboard_service import DashboardService
from .entity_client import Entities, EntityRepository
from .lock_service import GatewayService, LockService
from .report_service import ReportService
from .schedule_service import ScheduleService
from .sync_service import TTLockSyncService
from .ttlock_client import TTLockClient
from .user_service import UserService

__all__ = [
    "AccessControlService", "BuildingService", "PermissionService", "CredentialService",
    "DashboardService", "Entities", "EntityRepository", "GatewayService", "LockService",
    "ReportService", "ScheduleService", "TTLockSyncService", "TTLockClient", "UserService",
]
