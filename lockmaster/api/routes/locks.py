# =======================================================================================
# lockmaster/api/routes/locks.py - Lock and Gateway Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.schemas import (
    GatewayCreate, GatewayRecord, GatewayUpdate, GatewayView, ListResponse, LockCreate,
    LockUpdate, LockView,
)
from ...services.entity_client import Entities
from ...services.lock_service import GatewayService, LockService
from ..dependencies import get_entities

router = APIRouter()
lock_service = LockService()
gateway_service = GatewayService()


# ---- locks ----

@router.get("/locks", response_model=ListResponse[LockView])
def list_locks(
    search: Optional[str] = Query(None, description="Lock name, device id or unit"),
    status: str = "all",
    lock_type: str = "all",
    building: str = "all",
    battery: str = Query("all", description="low | medium | high"),
    entities: Entities = Depends(get_entities),
):
    return lock_service.list_locks(entities, search, status, lock_type, building, battery)


@router.delete("/locks")
def clear_locks(confirm: bool = False, entities: Entities = Depends(get_entities)):
    removed = lock_service.clear_all_locks(entities, confirm)
    return {"removed": removed}


@router.get("/locks/{lock_id}", response_model=LockView)
def get_lock(lock_id: str, entities: Entities = Depends(get_entities)):
    return lock_service.get_lock(entities, lock_id)


@router.post("/locks", response_model=LockView, status_code=201)
def create_lock(request: LockCreate, entities: Entities = Depends(get_entities)):
    return lock_service.create_lock(entities, request)


@router.put("/locks/{lock_id}", response_model=LockView)
def update_lock(lock_id: str, request: LockUpdate, entities: Entities = Depends(get_entities)):
    return lock_service.update_lock(entities, lock_id, request)


@router.delete("/locks/{lock_id}", status_code=204)
def delete_lock(lock_id: str, entities: Entities = Depends(get_entities)):
    lock_service.delete_lock(entities, lock_id)


# ---- gateways ----

@router.get("/gateways", response_model=ListResponse[GatewayView])
def list_gateways(entities: Entities = Depends(get_entities)):
    return gateway_service.list_gateways(entities)


@router.post("/gateways", response_model=GatewayRecord, status_code=201)
def create_gateway(request: GatewayCreate, entities: Entities = Depends(get_entities)):
    return gateway_service.create_gateway(entities, request)


@router.put("/gateways/{gateway_id}", response_model=GatewayRecord)
def update_gateway(gateway_id: str, request: GatewayUpdate,
                   entities: Entities = Depends(get_entities)):
    return gateway_service.update_gateway(entities, gateway_id, request)


@router.delete("/gateways/{gateway_id}", status_code=204)
def delete_gateway(gateway_id: str, entities: Entities = Depends(get_entities)):
    gateway_service.delete_gateway(entities, gateway_id)
