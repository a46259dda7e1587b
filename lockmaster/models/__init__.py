# =======================================================================================
# lockmaster/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "UserRecord", "LockRecord", "GatewayRecord", "BuildingRecord", "CredentialRecord",
    "ScheduleRecord", "PermissionRecord", "ActivityRecord", "TimeSlot", "AccessDecision",
    "ListResponse", "CredentialStatus", "ScheduleType", "OperationState", "TTLockAddType",
    "ALL", "WEEKDAYS",
]
