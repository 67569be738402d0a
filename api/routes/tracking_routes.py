"""
Telemetry collectors (proctoring logs, engagement heartbeats).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.tracking_schemas import (
    ExperienceSyncRequest,
    ExperienceSyncResponse,
    IngestResponse,
    ProctorIngestRequest,
)
from api.schemas.user_schemas import CurrentUser
from api.services.tracking_service import ingest_proctor_event, sync_experience
from api.utils.auth import get_current_user

tracking_routes = APIRouter()


@tracking_routes.post("/proctor/ingest", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest(
    req: ProctorIngestRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> IngestResponse:
    accepted, duplicate = ingest_proctor_event(db, current_user.student_id, req)
    return IngestResponse(accepted=accepted, duplicate=duplicate)


@tracking_routes.post("/experience/sync", response_model=ExperienceSyncResponse)
async def experience_sync(
    req: ExperienceSyncRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ExperienceSyncResponse:
    exp, duplicate = sync_experience(db, current_user.student_id, req)
    return ExperienceSyncResponse(
        accepted=True,
        duplicate=duplicate,
        time_spent=float(exp.time_spent),
        scroll_depth=int(exp.scroll_depth),
    )
