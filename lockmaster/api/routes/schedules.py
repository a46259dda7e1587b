# =======================================================================================
# lockmaster/api/routes/schedules.py - Access Schedule Endpoints
# =======================================================================================
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.schemas import (
    ListResponse, ScheduleCreate, ScheduleEvaluation, ScheduleRecord, ScheduleUpdate,
    ScheduleView,
)
from ...services.entity_client import Entities
from ...services.schedule_service import ScheduleService
from ..dependencies import get_entities

router = APIRouter()
schedule_service = ScheduleService()


@router.get("/schedules", response_model=ListResponse[ScheduleView])
def list_schedules(
    search: Optional[str] = None,
    schedule_type: str = "all",
    status: str = "all",
    user: str = "all",
    lock: str = "all",
    entities: Entities = Depends(get_entities),
):
    return schedule_service.list_schedules(entities, search, schedule_type, status, user, lock)


@router.get("/schedules/{schedule_id}", response_model=ScheduleRecord)
def get_schedule(schedule_id: str, entities: Entities = Depends(get_entities)):
    return schedule_service.get_schedule(entities, schedule_id)


@router.get("/schedules/{schedule_id}/evaluate", response_model=ScheduleEvaluation)
def evaluate_schedule(
    schedule_id: str,
    at: Optional[datetime] = Query(None, description="Wall-clock moment; defaults to now"),
    entities: Entities = Depends(get_entities),
):
    return schedule_service.evaluate(entities, schedule_id, at)


@router.post("/schedules", response_model=ScheduleRecord, status_code=201)
def create_schedule(request: ScheduleCreate, entities: Entities = Depends(get_entities)):
    return schedule_service.create_schedule(entities, request)


@router.put("/schedules/{schedule_id}", response_model=ScheduleRecord)
def update_schedule(schedule_id: str, request: ScheduleUpdate,
                    entities: Entities = Depends(get_entities)):
    return schedule_service.update_schedule(entities, schedule_id, request)


@router.delete("/schedules/{schedule_id}", status_code=204)
def delete_schedule(schedule_id: str, entities: Entities = Depends(get_entities)):
    schedule_service.delete_schedule(entities, schedule_id)
