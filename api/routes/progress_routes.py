"""
Progress endpoints: the document-store side of the progress store.
"""

from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.progress_schemas import ProgressItem, ProgressResponse, ProgressUpdateRequest
from api.schemas.user_schemas import CurrentUser
from api.services.progress_service import get_course_progress, update_progress
from api.utils.auth import get_current_user

progress_routes = APIRouter()


@progress_routes.get("/progress/{course_id}", response_model=Dict[str, ProgressItem])
async def read_course_progress(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, ProgressItem]:
    """All of the learner's progress rows for a course, keyed by module id."""
    records = get_course_progress(db, current_user.student_id, course_id)
    return {module_id: ProgressItem.from_record(r) for module_id, r in records.items()}


@progress_routes.put("/progress/{course_id}/{module_id}", response_model=ProgressResponse)
async def write_module_progress(
    course_id: str,
    module_id: str,
    req: ProgressUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProgressResponse:
    """Idempotent upsert of one module's progress."""
    record = update_progress(db, current_user.student_id, course_id, module_id, req)
    return ProgressResponse(
        module_id=module_id,
        course_id=course_id,
        **ProgressItem.from_record(record).model_dump(),
    )
