"""
Common utility functions used across multiple routes.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from api.config import settings
from api.models.models import Course as DbCourse, Module as DbModule
from coursegate.errors import NotFoundError
from coursegate.gating.types import Course, Module, ModuleType, StoreOrigin


def iso_format(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO string in UTC with Z suffix."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat() + "Z"


def to_engine_module(m: DbModule) -> Module:
    """Map a stored module onto the engine's `Module` (no progress yet)."""
    origin = None
    if m.origin:
        try:
            origin = StoreOrigin(m.origin)
        except ValueError:
            origin = None
    return Module(
        id=m.id,
        order=int(m.order_index),
        type=ModuleType.parse(m.module_type),
        pass_threshold=int(m.pass_threshold) if m.pass_threshold is not None else settings.PASS_THRESHOLD,
        title=m.title or "",
        proctored=m.proctored,
        origin=origin,
    )


def load_course(course_id: str, db: Session) -> Course:
    """Load a course as an engine `Course`. Raises `NotFoundError` when missing."""
    course = db.query(DbCourse).filter(DbCourse.id == course_id).first()
    if course is None:
        raise NotFoundError(f"course {course_id} not found")
    return Course.from_modules(course.id, [to_engine_module(m) for m in course.modules], title=course.title)


def get_db_module(module_id: str, db: Session) -> DbModule:
    m = db.query(DbModule).filter(DbModule.id == module_id).first()
    if m is None:
        raise NotFoundError(f"module {module_id} not found")
    return m
