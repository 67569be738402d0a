"""
Assessment attempt endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import Settings, get_db, get_settings
from api.schemas.assessment_schemas import (
    LockedOutResponse,
    StartAssessmentRequest,
    StartAssessmentResponse,
    SubmitAssessmentRequest,
    SubmitAssessmentResponse,
)
from api.schemas.user_schemas import CurrentUser
from api.services.assessment_service import start_attempt, submit_attempt
from api.utils.auth import get_current_user

assessment_routes = APIRouter()

LOCKED_RESPONSES = {423: {"model": LockedOutResponse, "description": "Proctoring lockout in force"}}


@assessment_routes.post("/assessment/start", response_model=StartAssessmentResponse, responses=LOCKED_RESPONSES)
async def start_assessment(
    req: StartAssessmentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> StartAssessmentResponse:
    """Open an attempt. 403 if the module is gated, 423 while a proctoring lockout runs."""
    return start_attempt(db, current_user, req.module_id, settings)


@assessment_routes.post("/assessment/submit", response_model=SubmitAssessmentResponse, responses=LOCKED_RESPONSES)
async def submit_assessment(
    req: SubmitAssessmentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubmitAssessmentResponse:
    return submit_attempt(db, current_user, req)
