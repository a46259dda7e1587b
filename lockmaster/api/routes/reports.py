# =======================================================================================
# lockmaster/api/routes/reports.py - Activity Reports and Audit Log
# =======================================================================================
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from ...models.schemas import ActivityCreate, ActivityRecord, ActivityView, ListResponse
from ...services.entity_client import Entities
from ...services.report_service import ReportService
from ..dependencies import get_entities

router = APIRouter()
report_service = ReportService()


def _report(entities, date_from, date_to, user, lock, event_type, outcome):
    return report_service.activity_report(
        entities, date_from, date_to, user, lock, event_type, outcome
    )


@router.get("/reports/activity", response_model=ListResponse[ActivityView])
def activity_report(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    user: str = "all",
    lock: str = "all",
    event_type: str = "all",
    outcome: str = Query("all", description="success | failed"),
    entities: Entities = Depends(get_entities),
):
    return _report(entities, date_from, date_to, user, lock, event_type, outcome)


@router.get("/reports/activity.csv")
def activity_report_csv(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    user: str = "all",
    lock: str = "all",
    event_type: str = "all",
    outcome: str = "all",
    entities: Entities = Depends(get_entities),
):
    report = _report(entities, date_from, date_to, user, lock, event_type, outcome)
    return Response(
        content=report_service.export_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="activity_report.csv"'},
    )


# ---- append-only activity log ----

@router.get("/activity", response_model=ListResponse[ActivityView])
def list_activity(limit: Optional[int] = Query(None, ge=1),
                  entities: Entities = Depends(get_entities)):
    return report_service.activity_report(entities, limit=limit)


@router.post("/activity", response_model=ActivityRecord, status_code=201)
def create_activity(request: ActivityCreate, entities: Entities = Depends(get_entities)):
    return report_service.create_activity(entities, request)
