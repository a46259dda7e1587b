# =======================================================================================
# lockmaster/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
AccessLevel = Literal["resident", "property_manager", "super_admin"]
UserStatus = Literal["active", "inactive", "suspended"]
LockType = Literal["main_entrance", "unit_door", "common_area", "amenity"]
LockStatus = Literal["online", "offline", "low_battery", "maintenance"]
GatewayStatus = Literal["online", "offline"]
CredentialType = Literal["pin", "one_time_pin", "rfid_card", "rfid_fob", "fingerprint", "app_key"]
CredentialStatus = Literal["active", "inactive", "expired", "revoked"]
ScheduleType = Literal["permanent", "temporary", "recurring", "one_time"]
ScheduleStatus = Literal["active", "inactive"]
PermissionStatus = Literal["active", "inactive"]
ActivityType = Literal["unlock", "lock", "failed_attempt", "battery_low", "offline"]
AccessMethod = Literal["app", "keypad", "card", "fingerprint", "key"]
BatteryBand = Literal["low", "medium", "high"]

# Sentinel used by every filter select meaning "no constraint"
ALL = "all"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DATED_SCHEDULE_TYPES = ("temporary", "one_time")
WEEKLY_SCHEDULE_TYPES = ("recurring", "permanent")

class OperationState(Enum):
    """Lifecycle of a long-running vendor operation."""
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"

class TTLockAddType(Enum):
    """How the vendor should deliver a new key to the lock."""
    BLUETOOTH = 1
    GATEWAY = 2
