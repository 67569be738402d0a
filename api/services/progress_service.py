"""
Server side of the progress API. Rows are upserted keyed by
(student, course, module); `locked_until` never moves backwards.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from api.schemas.progress_schemas import ProgressUpdateRequest
from coursegate.gating.types import Course, Module
from coursegate.progress.types import ProgressRecord
from infra.progress.sql_repository import row_to_record, rows_for_course, upsert_row

logger = logging.getLogger(__name__)


def get_course_progress(db: Session, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
    return {mid: row_to_record(row) for mid, row in rows_for_course(db, student_id, course_id).items()}


def get_module_progress(db: Session, student_id: str, course_id: str, module_id: str) -> Optional[ProgressRecord]:
    return get_course_progress(db, student_id, course_id).get(module_id)


def save_progress(
    db: Session,
    student_id: str,
    course_id: str,
    module_id: str,
    *,
    completed: Optional[bool] = None,
    quiz_score: Optional[int] = None,
    completed_topics: Optional[List[str]] = None,
    locked_until: Optional[datetime] = None,
) -> ProgressRecord:
    """Merge the given fields into the stored record (None keeps the stored value)."""
    current = get_module_progress(db, student_id, course_id, module_id) or ProgressRecord(student_id, course_id, module_id)
    if locked_until is not None:
        if locked_until.tzinfo is None:
            locked_until = locked_until.replace(tzinfo=timezone.utc)
        if locked_until <= datetime.now(timezone.utc):
            logger.debug("ignoring expired lockout module_id=%s until=%s", module_id, locked_until.isoformat())
            locked_until = None
    merged = current.merged(
        completed=completed,
        quiz_score=quiz_score,
        completed_topics=completed_topics,
        locked_until=locked_until,
    )
    record = row_to_record(upsert_row(db, merged))
    logger.info(
        "progress saved student_id=%s module_id=%s completed=%s score=%s",
        student_id, module_id, record.completed, record.quiz_score,
    )
    return record


def update_progress(db: Session, student_id: str, course_id: str, module_id: str, req: ProgressUpdateRequest) -> ProgressRecord:
    return save_progress(
        db,
        student_id,
        course_id,
        module_id,
        completed=req.completed,
        quiz_score=req.quiz_score,
        completed_topics=req.completed_topics,
        locked_until=req.locked_until,
    )


def course_snapshot(db: Session, course: Course, student_id: str) -> List[Module]:
    """The course's modules with this learner's stored progress applied."""
    progress = get_course_progress(db, student_id, course.id)
    out: List[Module] = []
    for m in course.modules:
        rec = progress.get(m.id)
        if rec is None:
            out.append(m)
        else:
            out.append(m.with_progress(completed=rec.completed, score=rec.quiz_score, completed_topics=rec.completed_topics))
    return out
