# =======================================================================================
# lockmaster/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field
from .enums import (
    AccessLevel, UserStatus, LockType, LockStatus, GatewayStatus, CredentialType,
    CredentialStatus, ScheduleType, ScheduleStatus, PermissionStatus, ActivityType,
    AccessMethod, BatteryBand,
)

T = TypeVar("T")

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class Record(BaseModel):
    """Fields every stored entity carries."""
    id: str
    created_date: datetime
    updated_date: datetime


# ========== Buildings ==========

class BuildingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    total_units: Optional[int] = Field(None, ge=0)

class BuildingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    total_units: Optional[int] = Field(None, ge=0)

class BuildingRecord(Record, BuildingCreate):
    pass


# ========== Users ==========

class UserCreate(BaseModel):
    full_name: Optional[str] = None
    email: str = Field(..., min_length=3, max_length=320, description="Login e-mail, unique")
    phone_number: Optional[str] = None
    apartment_unit: Optional[str] = None
    building_id: Optional[str] = None
    access_level: AccessLevel = "resident"
    status: UserStatus = "active"
    move_in_date: Optional[date] = None
    emergency_contact: Optional[str] = None

class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = Field(None, min_length=3, max_length=320)
    phone_number: Optional[str] = None
    apartment_unit: Optional[str] = None
    building_id: Optional[str] = None
    access_level: Optional[AccessLevel] = None
    status: Optional[UserStatus] = None
    move_in_date: Optional[date] = None
    emergency_contact: Optional[str] = None

class UserRecord(Record, UserCreate):
    pass


# ========== Gateways ==========

class GatewayCreate(BaseModel):
    gateway_name: str = Field(..., min_length=1, max_length=200)
    gateway_mac: Optional[str] = None
    network_name: Optional[str] = None
    status: GatewayStatus = "offline"
    last_activity: Optional[datetime] = None

class GatewayUpdate(BaseModel):
    gateway_name: Optional[str] = Field(None, min_length=1, max_length=200)
    gateway_mac: Optional[str] = None
    network_name: Optional[str] = None
    status: Optional[GatewayStatus] = None
    last_activity: Optional[datetime] = None

class GatewayRecord(Record, GatewayCreate):
    pass

class GatewayView(GatewayRecord):
    lock_count: int = 0


# ========== Locks ==========

class LockCreate(BaseModel):
    lock_id: str = Field(..., min_length=1, max_length=100, description="Vendor device id")
    lock_name: str = Field(..., min_length=1, max_length=200)
    building_id: Optional[str] = None
    unit_number: Optional[str] = None
    lock_type: LockType = "unit_door"
    status: LockStatus = "online"
    battery_level: Optional[int] = Field(None, ge=0, le=100)
    gateway_id: Optional[str] = None
    firmware_version: Optional[str] = None
    last_activity: Optional[datetime] = None
    ttlock_mac: Optional[str] = None
    ttlock_data: Optional[str] = None

class LockUpdate(BaseModel):
    lock_id: Optional[str] = Field(None, min_length=1, max_length=100)
    lock_name: Optional[str] = Field(None, min_length=1, max_length=200)
    building_id: Optional[str] = None
    unit_number: Optional[str] = None
    lock_type: Optional[LockType] = None
    status: Optional[LockStatus] = None
    battery_level: Optional[int] = Field(None, ge=0, le=100)
    gateway_id: Optional[str] = None
    firmware_version: Optional[str] = None
    last_activity: Optional[datetime] = None

class LockRecord(Record, LockCreate):
    pass

class LockView(LockRecord):
    battery_band: Optional[BatteryBand] = None


# ========== Credentials ==========

class CredentialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    user_id: str
    lock_id: str
    credential_type: CredentialType = "pin"
    credential_value: Optional[str] = Field(
        None, max_length=200, description="Generated when omitted for PIN, RFID and app keys"
    )
    status: CredentialStatus = "active"
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

class CredentialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    user_id: Optional[str] = None
    lock_id: Optional[str] = None
    credential_type: Optional[CredentialType] = None
    credential_value: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[CredentialStatus] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

class CredentialRecord(Record):
    name: str
    user_id: str
    lock_id: str
    credential_type: CredentialType
    credential_value: str
    status: CredentialStatus = "active"
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_count: int = 0
    ttlock_credential_id: Optional[str] = None

class CredentialView(CredentialRecord):
    effective_status: CredentialStatus
    display_value: str
    user_name: str
    lock_name: str

class GenerateValueRequest(BaseModel):
    credential_type: CredentialType

class GenerateValueResponse(BaseModel):
    credential_type: CredentialType
    credential_value: Optional[str] = None


# ========== Schedules ==========

class TimeSlot(BaseModel):
    start_time: str = Field(..., pattern=HHMM, description="HH:MM, 24h")
    end_time: str = Field(..., pattern=HHMM, description="HH:MM, 24h")

class ScheduleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    user_id: str
    lock_id: str
    credential_id: Optional[str] = None
    schedule_type: ScheduleType = "recurring"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: List[str] = Field(default_factory=list)
    time_slots: List[TimeSlot] = Field(
        default_factory=lambda: [TimeSlot(start_time="09:00", end_time="17:00")]
    )
    max_uses: Optional[int] = Field(None, ge=1)
    status: ScheduleStatus = "active"

class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    user_id: Optional[str] = None
    lock_id: Optional[str] = None
    credential_id: Optional[str] = None
    schedule_type: Optional[ScheduleType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[str]] = None
    time_slots: Optional[List[TimeSlot]] = None
    max_uses: Optional[int] = Field(None, ge=1)
    status: Optional[ScheduleStatus] = None

class ScheduleRecord(Record, ScheduleCreate):
    use_count: int = 0

class ScheduleView(ScheduleRecord):
    user_name: str
    lock_name: str
    days_label: str


# ========== Access permissions ==========

class PermissionCreate(BaseModel):
    user_id: str
    lock_id: str
    status: PermissionStatus = "active"

class PermissionUpdate(BaseModel):
    status: Optional[PermissionStatus] = None

class PermissionRecord(Record, PermissionCreate):
    pass


# ========== Activity ==========

class ActivityCreate(BaseModel):
    activity_type: ActivityType
    user_id: Optional[str] = None
    lock_id: Optional[str] = None
    method: Optional[AccessMethod] = None
    timestamp: Optional[datetime] = None
    success: bool = True
    details: Optional[str] = None

class ActivityRecord(Record):
    activity_type: ActivityType
    user_id: Optional[str] = None
    lock_id: Optional[str] = None
    method: Optional[AccessMethod] = None
    timestamp: datetime
    success: bool = True
    details: Optional[str] = None

class ActivityView(ActivityRecord):
    user_name: str
    lock_name: str


# ========== Listing ==========

class ListResponse(BaseModel, Generic[T]):
    total: int                  # size of the unfiltered source list
    count: int                  # size of the filtered view
    items: List[T]


# ========== Access checks ==========

class AccessDecision(BaseModel):
    granted: bool
    reason: str

class ScheduleEvaluation(AccessDecision):
    schedule_id: str
    evaluated_at: datetime

class AccessCheckRequest(BaseModel):
    user_id: str
    lock_id: str
    method: AccessMethod = "app"
    credential_value: Optional[str] = None
    at: Optional[datetime] = Field(None, description="Defaults to now in the portal timezone")

class AccessCheckResponse(AccessDecision):
    activity_id: str
    credential_id: Optional[str] = None
    schedule_id: Optional[str] = None


# ========== Dashboard ==========

class DashboardStats(BaseModel):
    users: int
    buildings: int
    locks: int
    active_permissions: int

class SystemAlert(BaseModel):
    type: str                   # "warning" | "error"
    title: str
    message: str
    count: int

class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_activity: List[ActivityView]
    alerts: List[SystemAlert]


# ========== TTLock ==========

class TTLockConnectRequest(BaseModel):
    """Overrides for the configured TTLock account; omitted fields fall back to config."""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class TTLockAccount(BaseModel):
    username: str
    client_id: str
    account_type: str = "TTLock App User"

class TTLockLock(BaseModel):
    lockId: int
    lockName: str = ""
    lockAlias: Optional[str] = None
    lockMac: Optional[str] = None
    lockVersion: Optional[str] = None
    electricQuantity: Optional[int] = None
    isOnline: Optional[bool] = None
    lockData: Optional[str] = None
    specialValue: Optional[int] = None
    timezoneRawOffset: Optional[int] = None

class OperationStatus(BaseModel):
    name: str
    state: str
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

class TTLockStatusResponse(BaseModel):
    connected: bool
    account: Optional[TTLockAccount] = None
    discovered: int
    last_sync: Optional[datetime] = None
    operations: List[OperationStatus]

class ImportResult(BaseModel):
    imported: int
    skipped: int
    lock_ids: List[str]

class TTLockCredentialRequest(BaseModel):
    lock_id: str = Field(..., description="Portal lock record id")
    user_id: str
    credential_type: CredentialType = "pin"
    key_name: str = Field(..., min_length=1, max_length=200)
    pin: Optional[str] = Field(None, pattern=r"^\d{4,8}$")
    card_number: Optional[str] = None
    start_date: datetime
    end_date: datetime


# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
