# =======================================================================================
# lockmaster/api/routes/buildings.py - Building and Permission Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends
from ...models.schemas import (
    BuildingCreate, BuildingRecord, BuildingUpdate, ListResponse, PermissionCreate,
    PermissionRecord, PermissionUpdate,
)
from ...services.building_service import BuildingService, PermissionService
from ...services.entity_client import Entities
from ..dependencies import get_entities

router = APIRouter()
building_service = BuildingService()
permission_service = PermissionService()


# ---- buildings ----

@router.get("/buildings", response_model=ListResponse[BuildingRecord])
def list_buildings(search: Optional[str] = None, entities: Entities = Depends(get_entities)):
    return building_service.list_buildings(entities, search)


@router.get("/buildings/{building_id}", response_model=BuildingRecord)
def get_building(building_id: str, entities: Entities = Depends(get_entities)):
    return building_service.get_building(entities, building_id)


@router.post("/buildings", response_model=BuildingRecord, status_code=201)
def create_building(request: BuildingCreate, entities: Entities = Depends(get_entities)):
    return building_service.create_building(entities, request)


@router.put("/buildings/{building_id}", response_model=BuildingRecord)
def update_building(building_id: str, request: BuildingUpdate,
                    entities: Entities = Depends(get_entities)):
    return building_service.update_building(entities, building_id, request)


@router.delete("/buildings/{building_id}", status_code=204)
def delete_building(building_id: str, entities: Entities = Depends(get_entities)):
    building_service.delete_building(entities, building_id)


# ---- access permissions ----

@router.get("/permissions", response_model=ListResponse[PermissionRecord])
def list_permissions(status: str = "all", user: str = "all", lock: str = "all",
                     entities: Entities = Depends(get_entities)):
    return permission_service.list_permissions(entities, status, user, lock)


@router.post("/permissions", response_model=PermissionRecord, status_code=201)
def create_permission(request: PermissionCreate, entities: Entities = Depends(get_entities)):
    return permission_service.create_permission(entities, request)


@router.put("/permissions/{permission_id}", response_model=PermissionRecord)
def update_permission(permission_id: str, request: PermissionUpdate,
                      entities: Entities = Depends(get_entities)):
    return permission_service.update_permission(entities, permission_id, request)


@router.delete("/permissions/{permission_id}", status_code=204)
def delete_permission(permission_id: str, entities: Entities = Depends(get_entities)):
    permission_service.delete_permission(entities, permission_id)
