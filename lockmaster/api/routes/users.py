# =======================================================================================
# lockmaster/api/routes/users.py - User Management Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.schemas import ListResponse, UserCreate, UserRecord, UserUpdate
from ...services.entity_client import Entities
from ...services.user_service import UserService
from ..dependencies import get_entities

router = APIRouter()
user_service = UserService()


@router.get("/users", response_model=ListResponse[UserRecord])
def list_users(
    search: Optional[str] = Query(None, description="Name, e-mail or unit"),
    status: str = "all",
    access_level: str = "all",
    building: str = "all",
    entities: Entities = Depends(get_entities),
):
    return user_service.list_users(entities, search, status, access_level, building)


@router.get("/users/{user_id}", response_model=UserRecord)
def get_user(user_id: str, entities: Entities = Depends(get_entities)):
    return user_service.get_user(entities, user_id)


@router.post("/users", response_model=UserRecord, status_code=201)
def create_user(request: UserCreate, entities: Entities = Depends(get_entities)):
    return user_service.create_user(entities, request)


@router.put("/users/{user_id}", response_model=UserRecord)
def update_user(user_id: str, request: UserUpdate, entities: Entities = Depends(get_entities)):
    return user_service.update_user(entities, user_id, request)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: str, entities: Entities = Depends(get_entities)):
    user_service.delete_user(entities, user_id)
