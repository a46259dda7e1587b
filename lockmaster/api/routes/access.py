# =======================================================================================
# lockmaster/api/routes/access.py - Access Check Endpoint
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import AccessCheckRequest, AccessCheckResponse
from ...services.access_control import AccessControlService
from ...services.entity_client import Entities
from ..dependencies import get_entities

router = APIRouter()
access_service = AccessControlService()


@router.post("/access/check", response_model=AccessCheckResponse)
def check_access(request: AccessCheckRequest, entities: Entities = Depends(get_entities)):
    """Decide an unlock attempt and record it in the activity log."""
    return access_service.process_access_request(entities, request)
