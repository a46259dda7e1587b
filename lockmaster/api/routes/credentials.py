# =======================================================================================
# lockmaster/api/routes/credentials.py - Credential Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends
from ...models.schemas import (
    CredentialCreate, CredentialRecord, CredentialUpdate, CredentialView,
    GenerateValueRequest, GenerateValueResponse, ListResponse,
)
from ...services.credential_service import CredentialService
from ...services.entity_client import Entities
from ..dependencies import get_entities

router = APIRouter()
credential_service = CredentialService()


@router.get("/credentials", response_model=ListResponse[CredentialView])
def list_credentials(
    search: Optional[str] = None,
    credential_type: str = "all",
    status: str = "all",
    user: str = "all",
    lock: str = "all",
    entities: Entities = Depends(get_entities),
):
    return credential_service.list_credentials(entities, search, credential_type, status, user, lock)


@router.post("/credentials/generate-value", response_model=GenerateValueResponse)
def generate_value(request: GenerateValueRequest):
    value = credential_service.generate_value(request.credential_type)
    return GenerateValueResponse(credential_type=request.credential_type, credential_value=value)


@router.get("/credentials/{credential_id}", response_model=CredentialRecord)
def get_credential(credential_id: str, entities: Entities = Depends(get_entities)):
    return credential_service.get_credential(entities, credential_id)


@router.post("/credentials", response_model=CredentialRecord, status_code=201)
def create_credential(request: CredentialCreate, entities: Entities = Depends(get_entities)):
    return credential_service.create_credential(entities, request)


@router.put("/credentials/{credential_id}", response_model=CredentialRecord)
def update_credential(credential_id: str, request: CredentialUpdate,
                      entities: Entities = Depends(get_entities)):
    return credential_service.update_credential(entities, credential_id, request)


@router.post("/credentials/{credential_id}/toggle", response_model=CredentialRecord)
def toggle_credential(credential_id: str, entities: Entities = Depends(get_entities)):
    return credential_service.toggle_status(entities, credential_id)


@router.delete("/credentials/{credential_id}", status_code=204)
def delete_credential(credential_id: str, entities: Entities = Depends(get_entities)):
    credential_service.delete_credential(entities, credential_id)
