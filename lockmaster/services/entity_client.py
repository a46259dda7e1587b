# =======================================================================================
# lockmaster/services/entity_client.py - Generic Entity Repository
# =======================================================================================
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from pydantic import BaseModel
from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, OperationalError
from ..models import tables
from ..models.schemas import (
    ActivityRecord, BuildingRecord, CredentialRecord, GatewayRecord, LockRecord,
    PermissionRecord, ScheduleRecord, UserRecord,
)
from ..utils.clock import to_storage, utcnow
from ..utils.exceptions import (
    ConflictError, EntityNotFoundError, TransientBackendError, ValidationFailedError,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_SORT = "-created_date"


class EntityRepository(Generic[M]):
    """
    list / filter / get / create / update / delete over one entity table.

    Every read returns pydantic records; sort keys are a column name with an
    optional '-' prefix for descending order.
    """

    def __init__(self, conn: Connection, table: Table, model: Type[M], entity: str):
        self.conn = conn
        self.table = table
        self.model = model
        self.entity = entity

    # ---------- helpers ----------

    def _order_by(self, sort: Optional[str]):
        key = sort or DEFAULT_SORT
        descending = key.startswith("-")
        name = key.lstrip("-")
        if name not in self.table.c:
            raise ValidationFailedError(f"Cannot sort {self.entity} by '{name}'")
        column = self.table.c[name]
        # id breaks ties so equal timestamps keep insertion-independent order
        if descending:
            return [column.desc(), self.table.c.id.desc()]
        return [column.asc(), self.table.c.id.asc()]

    def _columns(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        unknown = [k for k in fields if k not in self.table.c]
        if unknown:
            raise ValidationFailedError(
                f"Unknown {self.entity} field(s): {', '.join(sorted(unknown))}"
            )
        values = {}
        for key, value in fields.items():
            if value is None and not self.table.c[key].nullable:
                raise ValidationFailedError(f"{self.entity} field '{key}' cannot be empty")
            if isinstance(value, datetime):
                value = to_storage(value)
            values[key] = value
        return values

    def _to_model(self, row) -> M:
        return self.model.model_validate(dict(row))

    def _execute(self, stmt):
        try:
            return self.conn.execute(stmt)
        except IntegrityError as e:
            logger.warning("%s write rejected: %s", self.entity, e.orig)
            raise ConflictError(f"{self.entity} conflicts with an existing record") from e
        except OperationalError as e:
            logger.exception("%s backend unavailable", self.entity)
            raise TransientBackendError(f"{self.entity} storage is unavailable") from e

    # ---------- reads ----------

    def list(self, sort: Optional[str] = None, limit: Optional[int] = None) -> List[M]:
        stmt = select(self.table).order_by(*self._order_by(sort))
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_model(r) for r in self._execute(stmt).mappings().all()]

    def filter(self, criteria: Dict[str, Any], sort: Optional[str] = None,
               limit: Optional[int] = None) -> List[M]:
        stmt = select(self.table)
        for key, value in self._columns(criteria).items():
            stmt = stmt.where(self.table.c[key] == value)
        stmt = stmt.order_by(*self._order_by(sort))
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_model(r) for r in self._execute(stmt).mappings().all()]

    def get(self, record_id: str) -> M:
        row = self._execute(
            select(self.table).where(self.table.c.id == record_id)
        ).mappings().first()
        if row is None:
            raise EntityNotFoundError(self.entity, record_id)
        return self._to_model(row)

    def find(self, record_id: Optional[str]) -> Optional[M]:
        """Like get(), but None for missing or dangling references."""
        if not record_id:
            return None
        try:
            return self.get(record_id)
        except EntityNotFoundError:
            return None

    def count(self, criteria: Optional[Dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(self.table)
        for key, value in self._columns(criteria or {}).items():
            stmt = stmt.where(self.table.c[key] == value)
        return int(self._execute(stmt).scalar_one())

    # ---------- writes ----------

    def create(self, fields: Dict[str, Any]) -> M:
        now = to_storage(utcnow())
        values = self._columns(fields)
        values.update(id=uuid.uuid4().hex, created_date=now, updated_date=now)
        self._execute(insert(self.table).values(**values))
        logger.info("Created %s %s", self.entity, values["id"])
        return self.get(values["id"])

    def update(self, record_id: str, fields: Dict[str, Any]) -> M:
        values = self._columns(fields)
        values.pop("id", None)
        values.pop("created_date", None)
        values["updated_date"] = to_storage(utcnow())
        result = self._execute(
            update(self.table).where(self.table.c.id == record_id).values(**values)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(self.entity, record_id)
        logger.info("Updated %s %s (%s)", self.entity, record_id, ", ".join(sorted(fields)))
        return self.get(record_id)

    def delete(self, record_id: str) -> None:
        result = self._execute(delete(self.table).where(self.table.c.id == record_id))
        if result.rowcount == 0:
            raise EntityNotFoundError(self.entity, record_id)
        logger.info("Deleted %s %s", self.entity, record_id)


class Entities:
    """One repository per entity type, all sharing the request's connection."""

    def __init__(self, conn: Connection):
        self.conn = conn
        self.buildings = EntityRepository(conn, tables.buildings, BuildingRecord, "Building")
        self.users = EntityRepository(conn, tables.users, UserRecord, "User")
        self.locks = EntityRepository(conn, tables.locks, LockRecord, "Lock")
        self.gateways = EntityRepository(conn, tables.gateways, GatewayRecord, "Gateway")
        self.credentials = EntityRepository(conn, tables.credentials, CredentialRecord, "Credential")
        self.schedules = EntityRepository(conn, tables.access_schedules, ScheduleRecord, "AccessSchedule")
        self.permissions = EntityRepository(conn, tables.access_permissions, PermissionRecord, "AccessPermission")
        self.activity = EntityRepository(conn, tables.activity_logs, ActivityRecord, "ActivityLog")
