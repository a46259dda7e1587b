# =======================================================================================
# lockmaster/services/building_service.py - Buildings and Access Permissions
# =======================================================================================
import logging
from typing import Optional
from ..models.enums import ALL
from ..models.schemas import (
    BuildingCreate, BuildingRecord, BuildingUpdate, ListResponse, PermissionCreate,
    PermissionRecord, PermissionUpdate,
)
from ..utils.exceptions import ValidationFailedError
from .entity_client import Entities
from .filtering import apply_filters

logger = logging.getLogger(__name__)


class BuildingService:
    """Properties that group users and locks."""

    def list_buildings(self, entities: Entities, search: Optional[str] = None) -> ListResponse[BuildingRecord]:
        buildings = entities.buildings.list("-created_date")
        filtered = apply_filters(buildings, search, ("name", "address"))
        return ListResponse[BuildingRecord](total=len(buildings), count=len(filtered), items=filtered)

    def get_building(self, entities: Entities, building_id: str) -> BuildingRecord:
        return entities.buildings.get(building_id)

    def create_building(self, entities: Entities, request: BuildingCreate) -> BuildingRecord:
        return entities.buildings.create(request.model_dump())

    def update_building(self, entities: Entities, building_id: str,
                        request: BuildingUpdate) -> BuildingRecord:
        return entities.buildings.update(building_id, request.model_dump(exclude_unset=True))

    def delete_building(self, entities: Entities, building_id: str) -> None:
        entities.buildings.delete(building_id)


class PermissionService:
    """Standing user-to-lock grants counted on the dashboard."""

    def list_permissions(self, entities: Entities, status: str = ALL, user: str = ALL,
                         lock: str = ALL) -> ListResponse[PermissionRecord]:
        permissions = entities.permissions.list("-created_date")
        filtered = apply_filters(
            permissions, criteria={"status": status, "user_id": user, "lock_id": lock}
        )
        return ListResponse[PermissionRecord](total=len(permissions), count=len(filtered), items=filtered)

    def create_permission(self, entities: Entities, request: PermissionCreate) -> PermissionRecord:
        if entities.users.find(request.user_id) is None:
            raise ValidationFailedError(f"User {request.user_id} does not exist")
        if entities.locks.find(request.lock_id) is None:
            raise ValidationFailedError(f"Lock {request.lock_id} does not exist")
        return entities.permissions.create(request.model_dump())

    def update_permission(self, entities: Entities, permission_id: str,
                          request: PermissionUpdate) -> PermissionRecord:
        return entities.permissions.update(permission_id, request.model_dump(exclude_unset=True))

    def delete_permission(self, entities: Entities, permission_id: str) -> None:
        entities.permissions.delete(permission_id)
