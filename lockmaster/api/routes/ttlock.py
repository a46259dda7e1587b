# =======================================================================================
# lockmaster/api/routes/ttlock.py - TTLock Integration Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Body, Depends
from ...models.schemas import (
    CredentialRecord, ImportResult, TTLockConnectRequest, TTLockCredentialRequest, TTLockLock,
    TTLockStatusResponse,
)
from ...services.entity_client import Entities
from ...services.sync_service import TTLockSyncService
from ..dependencies import get_entities, get_sync_service

router = APIRouter()


@router.get("/ttlock/status", response_model=TTLockStatusResponse)
def ttlock_status(sync: TTLockSyncService = Depends(get_sync_service)):
    return sync.status()


@router.post("/ttlock/connect", response_model=TTLockStatusResponse)
async def ttlock_connect(request: Optional[TTLockConnectRequest] = None,
                         sync: TTLockSyncService = Depends(get_sync_service)):
    return await sync.connect(request)


@router.post("/ttlock/discover", response_model=List[TTLockLock])
async def ttlock_discover(sync: TTLockSyncService = Depends(get_sync_service)):
    return await sync.discover_locks()


@router.post("/ttlock/import", response_model=ImportResult, status_code=201)
def ttlock_import(
    lock_ids: Optional[List[int]] = Body(None, embed=True, description="Vendor lock ids to import"),
    sync: TTLockSyncService = Depends(get_sync_service),
    entities: Entities = Depends(get_entities),
):
    return sync.import_locks(entities, lock_ids)


@router.post("/ttlock/sync", response_model=TTLockStatusResponse, status_code=202)
async def ttlock_sync(sync: TTLockSyncService = Depends(get_sync_service)):
    return sync.start_sync()


@router.post("/ttlock/sync/cancel", response_model=TTLockStatusResponse)
async def ttlock_sync_cancel(sync: TTLockSyncService = Depends(get_sync_service)):
    return sync.cancel()


@router.post("/ttlock/credentials", response_model=CredentialRecord, status_code=201)
async def ttlock_credential(request: TTLockCredentialRequest,
                            sync: TTLockSyncService = Depends(get_sync_service),
                            entities: Entities = Depends(get_entities)):
    return await sync.create_credential(entities, request)
