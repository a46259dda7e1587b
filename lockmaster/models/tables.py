# =======================================================================================
# lockmaster/models/tables.py - Entity Tables
# =======================================================================================
from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Integer, MetaData, String, Table, Text,
)

metadata = MetaData()


def _timestamps():
    return [
        Column("created_date", DateTime, nullable=False),
        Column("updated_date", DateTime, nullable=False),
    ]


buildings = Table(
    "buildings", metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("address", String(500)),
    Column("total_units", Integer),
    *_timestamps(),
)

users = Table(
    "users", metadata,
    Column("id", String(32), primary_key=True),
    Column("full_name", String(200)),
    Column("email", String(320), nullable=False, unique=True),
    Column("phone_number", String(50)),
    Column("apartment_unit", String(50)),
    Column("building_id", String(32)),
    Column("access_level", String(30), nullable=False, default="resident"),
    Column("status", String(20), nullable=False, default="active"),
    Column("move_in_date", Date),
    Column("emergency_contact", String(200)),
    *_timestamps(),
)

gateways = Table(
    "gateways", metadata,
    Column("id", String(32), primary_key=True),
    Column("gateway_name", String(200), nullable=False),
    Column("gateway_mac", String(50)),
    Column("network_name", String(200)),
    Column("status", String(20), nullable=False, default="offline"),
    Column("last_activity", DateTime),
    *_timestamps(),
)

locks = Table(
    "locks", metadata,
    Column("id", String(32), primary_key=True),
    Column("lock_id", String(100), nullable=False),
    Column("lock_name", String(200), nullable=False),
    Column("building_id", String(100)),
    Column("unit_number", String(50)),
    Column("lock_type", String(30), nullable=False, default="unit_door"),
    Column("status", String(20), nullable=False, default="online"),
    Column("battery_level", Integer),
    Column("gateway_id", String(32)),
    Column("firmware_version", String(50)),
    Column("last_activity", DateTime),
    Column("ttlock_mac", String(50)),
    Column("ttlock_data", Text),
    *_timestamps(),
)

credentials = Table(
    "credentials", metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("user_id", String(32), nullable=False),
    Column("lock_id", String(32), nullable=False),
    Column("credential_type", String(20), nullable=False),
    Column("credential_value", String(200), nullable=False),
    Column("status", String(20), nullable=False, default="active"),
    Column("valid_from", DateTime),
    Column("valid_until", DateTime),
    Column("usage_count", Integer, nullable=False, default=0),
    Column("ttlock_credential_id", String(100)),
    *_timestamps(),
)

access_schedules = Table(
    "access_schedules", metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("user_id", String(32), nullable=False),
    Column("lock_id", String(32), nullable=False),
    Column("credential_id", String(32)),
    Column("schedule_type", String(20), nullable=False, default="recurring"),
    Column("start_date", Date),
    Column("end_date", Date),
    Column("days_of_week", JSON, nullable=False, default=list),
    Column("time_slots", JSON, nullable=False, default=list),
    Column("max_uses", Integer),
    Column("use_count", Integer, nullable=False, default=0),
    Column("status", String(20), nullable=False, default="active"),
    *_timestamps(),
)

access_permissions = Table(
    "access_permissions", metadata,
    Column("id", String(32), primary_key=True),
    Column("user_id", String(32), nullable=False),
    Column("lock_id", String(32), nullable=False),
    Column("status", String(20), nullable=False, default="active"),
    *_timestamps(),
)

activity_logs = Table(
    "activity_logs", metadata,
    Column("id", String(32), primary_key=True),
    Column("activity_type", String(30), nullable=False),
    Column("user_id", String(32)),
    Column("lock_id", String(32)),
    Column("method", String(20)),
    Column("timestamp", DateTime, nullable=False),
    Column("success", Boolean, nullable=False, default=True),
    Column("details", Text),
    *_timestamps(),
)
