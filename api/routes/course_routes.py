"""
Course access and learning-path endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.course_schemas import CourseAccessResponse, ModuleAccess, RebalanceResponse
from api.schemas.user_schemas import CurrentUser
from api.services.progress_service import course_snapshot, get_course_progress
from api.services.recommendation_service import rebalance
from api.utils.auth import get_current_user
from api.utils.common import load_course
from coursegate.gating import can_access, module_status, next_reachable
from coursegate.proctoring.lockout import remaining_seconds

course_routes = APIRouter()


@course_routes.get("/courses/{course_id}/access", response_model=CourseAccessResponse)
async def course_access(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CourseAccessResponse:
    """Gate decision and status for every module of the course, for the current learner."""
    course = load_course(course_id, db)
    modules = course_snapshot(db, course, current_user.student_id)
    progress = get_course_progress(db, current_user.student_id, course_id)
    out = []
    for i, m in enumerate(modules):
        rec = progress.get(m.id)
        out.append(
            ModuleAccess(
                module_id=m.id,
                title=m.title,
                order=m.order,
                type=m.type.value,
                status=module_status(modules, i, current_user.role).value,
                accessible=can_access(modules, i, current_user.role),
                quiz_score=m.score,
                lockout_remaining_seconds=remaining_seconds(rec.locked_until if rec else None),
            )
        )
    idx = next_reachable(modules, current_user.role)
    return CourseAccessResponse(
        course_id=course_id,
        modules=out,
        next_module_id=modules[idx].id if idx is not None else None,
    )


@course_routes.post("/learning-path/{course_id}/rebalance", response_model=RebalanceResponse)
async def rebalance_learning_path(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RebalanceResponse:
    recommended, next_id = rebalance(db, current_user.student_id, course_id, current_user.role)
    return RebalanceResponse(course_id=course_id, recommended=recommended, next_module_id=next_id)
