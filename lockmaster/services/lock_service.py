# =======================================================================================
# lockmaster/services/lock_service.py - Locks and Gateways
# =======================================================================================
import logging
from typing import List, Optional
from ..models.enums import ALL
from ..models.schemas import (
    GatewayCreate, GatewayRecord, GatewayUpdate, GatewayView, ListResponse, LockCreate,
    LockRecord, LockUpdate, LockView,
)
from ..utils.exceptions import ValidationFailedError
from .entity_client import Entities
from .filtering import battery_band, filter_locks

logger = logging.getLogger(__name__)

UNKNOWN_LOCK = "Unknown Lock"


def lock_label(lock: Optional[LockRecord]) -> str:
    return lock.lock_name if lock is not None else UNKNOWN_LOCK


class LockService:
    """Lock inventory: manual entries and vendor imports share one table."""

    @staticmethod
    def to_view(lock: LockRecord) -> LockView:
        return LockView(**lock.model_dump(), battery_band=battery_band(lock.battery_level))

    def list_locks(self, entities: Entities, search: Optional[str] = None, status: str = ALL,
                   lock_type: str = ALL, building: str = ALL,
                   battery: str = ALL) -> ListResponse[LockView]:
        locks = entities.locks.list("-created_date")
        filtered = filter_locks(locks, search, status, lock_type, building, battery)
        return ListResponse[LockView](
            total=len(locks), count=len(filtered), items=[self.to_view(lock) for lock in filtered]
        )

    def get_lock(self, entities: Entities, lock_id: str) -> LockView:
        return self.to_view(entities.locks.get(lock_id))

    def _check_gateway(self, entities: Entities, gateway_id: Optional[str]):
        if gateway_id and entities.gateways.find(gateway_id) is None:
            raise ValidationFailedError(f"Gateway {gateway_id} does not exist")

    def create_lock(self, entities: Entities, request: LockCreate) -> LockView:
        self._check_gateway(entities, request.gateway_id)
        return self.to_view(entities.locks.create(request.model_dump()))

    def update_lock(self, entities: Entities, lock_id: str, request: LockUpdate) -> LockView:
        fields = request.model_dump(exclude_unset=True)
        self._check_gateway(entities, fields.get("gateway_id"))
        return self.to_view(entities.locks.update(lock_id, fields))

    def delete_lock(self, entities: Entities, lock_id: str) -> None:
        entities.locks.delete(lock_id)

    def clear_all_locks(self, entities: Entities, confirm: bool) -> int:
        """Delete every lock record. Refused unless explicitly confirmed."""
        if not confirm:
            raise ValidationFailedError("Clearing all locks requires confirm=true")
        removed = 0
        for lock in entities.locks.list():
            entities.locks.delete(lock.id)
            removed += 1
        logger.warning("Cleared all locks (%d removed)", removed)
        return removed


class GatewayService:
    """Network bridges and the locks they relay for."""

    @staticmethod
    def locks_for_gateway(locks: List[LockRecord], gateway_id: str) -> List[LockRecord]:
        return [lock for lock in locks if lock.gateway_id == gateway_id]

    def list_gateways(self, entities: Entities) -> ListResponse[GatewayView]:
        gateways = entities.gateways.list("-created_date")
        locks = entities.locks.list()
        items = [
            GatewayView(**g.model_dump(), lock_count=len(self.locks_for_gateway(locks, g.id)))
            for g in gateways
        ]
        return ListResponse[GatewayView](total=len(gateways), count=len(items), items=items)

    def create_gateway(self, entities: Entities, request: GatewayCreate) -> GatewayRecord:
        return entities.gateways.create(request.model_dump())

    def update_gateway(self, entities: Entities, gateway_id: str, request: GatewayUpdate) -> GatewayRecord:
        return entities.gateways.update(gateway_id, request.model_dump(exclude_unset=True))

    def delete_gateway(self, entities: Entities, gateway_id: str) -> None:
        entities.gateways.delete(gateway_id)
