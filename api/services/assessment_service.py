"""
Assessment attempts: start (gate + lockout check) and submit (score + record).
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from api.config import Settings
from api.models.models import QuizAttempt
from api.schemas.assessment_schemas import (
    QuestionOut,
    QuestionResultOut,
    StartAssessmentResponse,
    SubmitAssessmentRequest,
    SubmitAssessmentResponse,
)
from api.schemas.user_schemas import CurrentUser
from api.services.progress_service import course_snapshot, get_module_progress, save_progress
from api.utils.common import get_db_module, load_course
from api.utils.logger import log_request
from coursegate.errors import LockedOutError, NotFoundError, ValidationError
from coursegate.gating import can_access
from coursegate.gating.types import Module
from coursegate.proctoring.lockout import format_remaining, lockout_tier, remaining_seconds
from coursegate.progress.types import ProgressRecord
from coursegate.scoring import Question, ScoreResult, answers_from_mapping, score

logger = logging.getLogger(__name__)


def ensure_not_locked(db: Session, student_id: str, course_id: str, module: Module) -> None:
    rec = get_module_progress(db, student_id, course_id, module.id)
    left = remaining_seconds(rec.locked_until if rec else None)
    if left > 0:
        tier = lockout_tier(module.type, module.id)
        raise LockedOutError(rec.locked_until, left, tier.value, format_remaining(left, tier))


def best_score(previous: Optional[ProgressRecord], score_now: int) -> int:
    """A retake never lowers the recorded score, so a failed retake cannot re-lock a passed module."""
    if previous is None or previous.quiz_score is None:
        return score_now
    return max(previous.quiz_score, score_now)


def start_attempt(db: Session, user: CurrentUser, module_id: str, settings: Settings) -> StartAssessmentResponse:
    db_module = get_db_module(module_id, db)
    course = load_course(db_module.course_id, db)
    modules = course_snapshot(db, course, user.student_id)
    index = course.index_of(module_id)
    if not can_access(modules, index, user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Module is locked")
    module = modules[index]
    questions = db_module.quiz or []
    if not questions:
        raise ValidationError(f"module {module_id} has no assessment")
    ensure_not_locked(db, user.student_id, course.id, module)

    attempt = QuizAttempt(
        id=str(uuid4()),
        student_id=user.student_id,
        course_id=course.id,
        module_id=module_id,
        status="started",
    )
    db.add(attempt)
    db.commit()
    logger.info("assessment started attempt_id=%s student_id=%s module_id=%s", attempt.id, user.student_id, module_id)

    shown = [Question.from_dict(q, i) for i, q in enumerate(questions)]
    return StartAssessmentResponse(
        attempt_id=attempt.id,
        module_id=module_id,
        duration_seconds=settings.ATTEMPT_SECONDS,
        max_warnings=settings.MAX_WARNINGS,
        proctored=module.is_proctored,
        questions=[QuestionOut(id=q.id, question=q.text, options=list(q.options)) for q in shown],
    )


def _response(attempt: QuizAttempt, result: ScoreResult) -> SubmitAssessmentResponse:
    return SubmitAssessmentResponse(
        attempt_id=attempt.id,
        score=result.score,
        passed=result.passed,
        correct_count=result.correct_count,
        total_questions=result.total,
        retake_required=result.retake_required,
        diagnostic=result.diagnostic,
        details=[
            QuestionResultOut(question_id=d.question_id, submitted=d.submitted, correct=d.correct)
            for d in result.details
        ],
    )


def _stored_response(attempt: QuizAttempt) -> SubmitAssessmentResponse:
    details = attempt.details or {}
    return SubmitAssessmentResponse(
        attempt_id=attempt.id,
        score=attempt.score or 0,
        passed=bool(attempt.passed),
        correct_count=details.get("correctCount", 0),
        total_questions=details.get("totalQuestions", 0),
        retake_required=not attempt.passed,
        diagnostic=details.get("diagnostic", False),
        details=[QuestionResultOut(**d) for d in details.get("details", [])],
    )


def submit_attempt(db: Session, user: CurrentUser, req: SubmitAssessmentRequest) -> SubmitAssessmentResponse:
    attempt = db.query(QuizAttempt).filter(QuizAttempt.id == req.proctoring_session_id).first()
    if attempt is None or attempt.student_id != user.student_id:
        raise NotFoundError(f"attempt {req.proctoring_session_id} not found")
    if attempt.module_id != req.module_id:
        raise ValidationError("attempt does not belong to this module")
    if attempt.status == "submitted":
        # resubmission of a finished attempt returns the stored result
        return _stored_response(attempt)

    db_module = get_db_module(req.module_id, db)
    course = load_course(db_module.course_id, db)
    module = course.module(req.module_id)
    ensure_not_locked(db, user.student_id, course.id, module)

    previous = get_module_progress(db, user.student_id, course.id, module.id)
    questions = db_module.quiz or []
    answers = answers_from_mapping(questions, req.answers) if isinstance(req.answers, dict) else req.answers
    with log_request(logger, f"assessment submit attempt_id={attempt.id}"):
        result = score(questions, answers, module.type, module.pass_threshold)
        payload = result.to_dict()
        attempt.status = "submitted"
        attempt.submitted_at = datetime.utcnow()
        attempt.answers = req.answers
        attempt.score = result.score
        attempt.passed = result.passed
        attempt.details = {k: payload[k] for k in ("correctCount", "totalQuestions", "diagnostic", "details")}
        db.commit()
        save_progress(db, user.student_id, course.id, module.id, completed=True, quiz_score=best_score(previous, result.score))

    logger.info(
        "assessment submitted attempt_id=%s module_id=%s score=%d passed=%s",
        attempt.id, module.id, result.score, result.passed,
    )
    return _response(attempt, result)
