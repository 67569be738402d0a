"""
Course access and learning-path schemas.
"""

from typing import Optional

from api.schemas.base import CamelModel


class ModuleAccess(CamelModel):
    module_id: str
    title: str
    order: int
    type: str
    status: str  # locked|available|completed|retake_required
    accessible: bool
    quiz_score: Optional[int] = None
    lockout_remaining_seconds: int = 0


class CourseAccessResponse(CamelModel):
    course_id: str
    modules: list[ModuleAccess]
    next_module_id: Optional[str] = None


class RebalanceResponse(CamelModel):
    course_id: str
    recommended: list[str]
    next_module_id: Optional[str] = None
