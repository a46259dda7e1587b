# =======================================================================================
# lockmaster/services/sync_service.py - TTLock Synchronization Service
# =======================================================================================
import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional
from ..config import config
from ..database import db_manager
from ..models.enums import OperationState
from ..models.schemas import (
    CredentialCreate, CredentialRecord, ImportResult, OperationStatus, TTLockAccount,
    TTLockConnectRequest, TTLockCredentialRequest, TTLockLock, TTLockStatusResponse,
)
from ..utils.clock import utcnow
from ..utils.validators import CredentialValidator
from ..utils.exceptions import (
    OperationInProgressError, TTLockError, TTLockNotConfiguredError, ValidationFailedError,
)
from .credential_service import CredentialService, generate_credential_value
from .entity_client import Entities
from .ttlock_client import TTLockClient

logger = logging.getLogger(__name__)

IMPORTED_BUILDING = "IMPORTED"

_BUILDING_RE = re.compile(r"Building\s+([A-Z0-9]+)", re.IGNORECASE)
_UNIT_RE = re.compile(r"(?:Unit|Apartment)\s+([A-Z0-9]+)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"(\d+[A-Z]?)")

PASSCODE_TYPES = ("pin", "one_time_pin")
CARD_TYPES = ("rfid_card", "rfid_fob")


# ---------- vendor name parsing ----------

def extract_building(name: str) -> Optional[str]:
    match = _BUILDING_RE.search(name or "")
    return f"Building {match.group(1)}" if match else None


def extract_unit(name: str) -> str:
    match = _UNIT_RE.search(name or "") or _NUMBER_RE.search(name or "")
    return match.group(1) if match else ""


def determine_lock_type(name: str) -> str:
    lowered = (name or "").lower()
    if "main" in lowered or "entrance" in lowered:
        return "main_entrance"
    if "unit" in lowered or "apartment" in lowered:
        return "unit_door"
    if "gym" in lowered or "amenity" in lowered:
        return "amenity"
    return "unit_door"


def map_ttlock_lock(lock: TTLockLock, building_id: Optional[str]) -> Dict[str, Any]:
    """Lock record fields for a discovered vendor lock."""
    name = lock.lockAlias or lock.lockName or str(lock.lockId)
    return {
        "lock_id": str(lock.lockId),
        "lock_name": name,
        "building_id": building_id,
        "unit_number": extract_unit(name),
        "lock_type": determine_lock_type(name),
        "battery_level": lock.electricQuantity,
        "status": "online" if lock.isOnline else "offline",
        "firmware_version": lock.lockVersion,
        "last_activity": utcnow(),
        "ttlock_mac": lock.lockMac,
        "ttlock_data": lock.lockData,
    }


# ---------- operation state ----------

class SyncOperation:
    """
    idle -> pending -> success | failure, or pending -> cancelled.

    A finished operation may be started again; starting one that is still
    pending raises OperationInProgressError.
    """

    def __init__(self, name: str):
        self.name = name
        self.state = OperationState.IDLE
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.error: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self.state is OperationState.PENDING

    def begin(self):
        if self.pending:
            raise OperationInProgressError(f"TTLock {self.name} is already running")
        self.state = OperationState.PENDING
        self.started_at = utcnow()
        self.finished_at = None
        self.error = None

    def _finish(self, state: OperationState, error: Optional[str] = None):
        if not self.pending:
            raise OperationInProgressError(
                f"TTLock {self.name} is not running (state: {self.state.value})"
            )
        self.state = state
        self.finished_at = utcnow()
        self.error = error

    def succeed(self):
        self._finish(OperationState.SUCCESS)

    def fail(self, error: str):
        self._finish(OperationState.FAILURE, error)

    def cancel(self):
        self._finish(OperationState.CANCELLED, "Cancelled")

    def snapshot(self) -> OperationStatus:
        return OperationStatus(
            name=self.name, state=self.state.value, started_at=self.started_at,
            finished_at=self.finished_at, error=self.error,
        )


class TTLockSyncService:
    """Connects the portal to a TTLock account and mirrors its locks locally."""

    OPERATIONS = ("connect", "discover", "import", "sync")

    def __init__(self, client_factory: Optional[Callable[..., TTLockClient]] = None,
                 connection_factory: Optional[Callable] = None,
                 credential_service: Optional[CredentialService] = None):
        self.client_factory = client_factory or TTLockClient.from_config
        self.connection_factory = connection_factory or db_manager.get_connection
        self.credential_service = credential_service or CredentialService()
        self.client: Optional[TTLockClient] = None
        self.account: Optional[TTLockAccount] = None
        self.discovered: List[TTLockLock] = []
        self.last_sync: Optional[datetime] = None
        self.operations = {name: SyncOperation(name) for name in self.OPERATIONS}
        self._sync_task: Optional[asyncio.Task] = None

    # ---------- helpers ----------

    def _client(self) -> TTLockClient:
        if self.client is None:
            if not config.ttlock_configured:
                raise TTLockNotConfiguredError("Connect a TTLock account first")
            self.client = self.client_factory()
        return self.client

    async def _run(self, name: str, factory: Callable[[], Awaitable[Any]]):
        """Drive one operation through its states; the awaitable is created after begin()."""
        operation = self.operations[name]
        operation.begin()
        try:
            result = await factory()
        except asyncio.CancelledError:
            if operation.pending:
                operation.cancel()
            raise
        except Exception as e:
            if operation.pending:
                operation.fail(str(e))
            logger.exception("TTLock %s failed", name)
            raise
        # a cancel() that lost the race has already closed the operation
        if operation.pending:
            operation.succeed()
        return result

    def status(self) -> TTLockStatusResponse:
        return TTLockStatusResponse(
            connected=self.client is not None and self.account is not None,
            account=self.account,
            discovered=len(self.discovered),
            last_sync=self.last_sync,
            operations=[op.snapshot() for op in self.operations.values()],
        )

    # ---------- connect / discover / import ----------

    async def connect(self, request: Optional[TTLockConnectRequest] = None) -> TTLockStatusResponse:
        overrides = request.model_dump() if request is not None else {}

        async def _connect():
            client = self.client_factory(overrides)
            await client.get_access_token()
            self.client = client
            self.account = TTLockAccount(username=client.username, client_id=client.client_id)

        try:
            await self._run("connect", _connect)
        except TTLockError:
            self.client = None
            self.account = None
            raise
        logger.info("Connected TTLock account %s", self.account.username)
        return self.status()

    async def discover_locks(self) -> List[TTLockLock]:
        client = self._client()
        self.discovered = await self._run("discover", client.list_locks)
        return self.discovered

    @staticmethod
    def resolve_building(entities: Entities, name: str, cache: Dict[str, str]) -> str:
        """Id of the building called `name`, creating it on first sight."""
        key = name.lower()
        if key not in cache:
            for building in entities.buildings.list():
                if building.name.lower() == key:
                    cache[key] = building.id
                    break
            else:
                cache[key] = entities.buildings.create({"name": name}).id
        return cache[key]

    def _import(self, entities: Entities, lock_ids: Optional[List[int]] = None) -> ImportResult:
        wanted = set(lock_ids) if lock_ids else None
        existing = {lock.lock_id for lock in entities.locks.list()}
        buildings: Dict[str, str] = {}
        imported: List[str] = []
        skipped = 0

        for ttlock in self.discovered:
            if wanted is not None and ttlock.lockId not in wanted:
                continue
            if str(ttlock.lockId) in existing:
                skipped += 1
                continue
            name = ttlock.lockAlias or ttlock.lockName
            building_name = extract_building(name) or IMPORTED_BUILDING
            fields = map_ttlock_lock(ttlock, self.resolve_building(entities, building_name, buildings))
            record = entities.locks.create(fields)
            existing.add(record.lock_id)
            imported.append(record.id)

        logger.info("Imported %d TTLock lock(s), skipped %d already present", len(imported), skipped)
        return ImportResult(imported=len(imported), skipped=skipped, lock_ids=imported)

    def import_locks(self, entities: Entities, lock_ids: Optional[List[int]] = None) -> ImportResult:
        """Create lock records for discovered locks; lock_ids narrows the selection."""
        operation = self.operations["import"]
        operation.begin()
        try:
            result = self._import(entities, lock_ids)
        except Exception as e:
            operation.fail(str(e))
            raise
        operation.succeed()
        return result

    # ---------- background sync ----------

    async def _sync(self) -> ImportResult:
        await self.discover_locks()
        with self.connection_factory() as conn:
            result = self.import_locks(Entities(conn))
        self.last_sync = utcnow()
        return result

    async def _sync_with_timeout(self) -> ImportResult:
        try:
            return await asyncio.wait_for(self._sync(), timeout=config.TTLOCK_SYNC_TIMEOUT)
        except asyncio.TimeoutError as e:
            raise TTLockError(f"TTLock sync timed out after {config.TTLOCK_SYNC_TIMEOUT}s") from e

    def start_sync(self) -> TTLockStatusResponse:
        """Discover and import in the background; poll status() for the outcome."""
        self._client()
        if self.operations["sync"].pending:
            raise OperationInProgressError("TTLock sync is already running")
        self._sync_task = asyncio.ensure_future(self._run("sync", self._sync_with_timeout))
        self._sync_task.add_done_callback(self._sync_done)
        return self.status()

    @staticmethod
    def _sync_done(task: asyncio.Task):
        if task.cancelled():
            logger.info("TTLock sync cancelled")
        elif task.exception() is not None:
            logger.warning("TTLock sync ended with error: %s", task.exception())

    async def wait_for_sync(self) -> Optional[ImportResult]:
        if self._sync_task is None:
            return None
        try:
            return await self._sync_task
        except (asyncio.CancelledError, TTLockError):
            return None

    def cancel(self) -> TTLockStatusResponse:
        operation = self.operations["sync"]
        if self._sync_task is None or self._sync_task.done() or not operation.pending:
            raise OperationInProgressError("No TTLock sync is running")
        operation.cancel()
        self._sync_task.cancel()
        return self.status()

    # ---------- credentials ----------

    async def create_credential(self, entities: Entities,
                                request: TTLockCredentialRequest) -> CredentialRecord:
        """Push a PIN or card to the vendor lock, then record it locally."""
        CredentialValidator.validate_validity_window(request.start_date, request.end_date)
        if request.credential_type in PASSCODE_TYPES:
            value = request.pin or generate_credential_value(request.credential_type)
        elif request.credential_type in CARD_TYPES:
            if not request.card_number:
                raise ValidationFailedError("card_number is required for RFID credentials")
            value = request.card_number
        else:
            raise ValidationFailedError(
                f"TTLock cannot issue {request.credential_type} credentials"
            )
        # nothing reaches the lock unless the local record would be accepted too
        CredentialValidator.validate_value(request.credential_type, value)

        lock = entities.locks.get(request.lock_id)
        entities.users.get(request.user_id)
        try:
            vendor_lock_id = int(lock.lock_id)
        except ValueError as e:
            raise ValidationFailedError(f"Lock {lock.lock_name} is not a TTLock device") from e

        client = self._client()
        if request.credential_type in PASSCODE_TYPES:
            vendor_id = await client.add_passcode(
                vendor_lock_id, value, request.key_name, request.start_date, request.end_date
            )
        else:
            vendor_id = await client.add_card(
                vendor_lock_id, value, request.key_name, request.start_date, request.end_date
            )

        return self.credential_service.create_credential(
            entities,
            CredentialCreate(
                name=request.key_name,
                user_id=request.user_id,
                lock_id=lock.id,
                credential_type=request.credential_type,
                credential_value=value,
                valid_from=request.start_date,
                valid_until=request.end_date,
            ),
            ttlock_credential_id=str(vendor_id),
        )
