"""
Collectors for client telemetry. Delivery is at-least-once, so both are
idempotent: proctoring events by `eventId`, heartbeats by `beatId` (or, for
clients that send none, per 30s bucket).
"""

import logging
from datetime import datetime, timezone
from typing import Tuple
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.config import settings
from api.models.models import ExperienceBeat, ModuleExperience, ProctoringLog, QuizAttempt
from api.schemas.tracking_schemas import ExperienceSyncRequest, ProctorIngestRequest
from api.services.progress_service import save_progress
from coursegate.progress.types import parse_timestamp

logger = logging.getLogger(__name__)

HEARTBEAT_BUCKET_SECONDS = int(settings.HEARTBEAT_SECONDS)


def ingest_proctor_event(db: Session, student_id: str, req: ProctorIngestRequest) -> Tuple[bool, bool]:
    """Store one proctoring event. Returns (accepted, duplicate)."""
    if req.student_id and req.student_id != student_id:
        logger.warning("proctor event student mismatch token=%s body=%s", student_id, req.student_id)
    event_id = req.event_id or str(uuid4())
    if db.query(ProctoringLog.id).filter(ProctoringLog.event_id == event_id).first() is not None:
        logger.debug("duplicate proctor event event_id=%s", event_id)
        return True, True

    db.add(
        ProctoringLog(
            event_id=event_id,
            student_id=student_id,
            course_id=req.course_id,
            attempt_id=req.attempt_id,
            event_type=req.event_type,
            details=req.details,
            timestamp=req.timestamp,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return True, True
    logger.info("proctor event type=%s attempt_id=%s student_id=%s", req.event_type, req.attempt_id, student_id)

    if req.event_type == "lockout":
        _apply_lockout(db, student_id, req)
    return True, False


def _apply_lockout(db: Session, student_id: str, req: ProctorIngestRequest) -> None:
    """Mirror a client lockout onto progress, so it holds even if the client's own write was lost."""
    until = parse_timestamp(req.details.get("lockedUntil"))
    attempt = db.query(QuizAttempt).filter(QuizAttempt.id == req.attempt_id).first() if req.attempt_id else None
    if until is None or attempt is None or attempt.student_id != student_id:
        logger.warning("lockout event without usable attempt attempt_id=%s", req.attempt_id)
        return
    save_progress(db, student_id, attempt.course_id, attempt.module_id, locked_until=until)


def bucket_of(ts: datetime, seconds: int = HEARTBEAT_BUCKET_SECONDS) -> int:
    return int(ts.timestamp() // seconds)


def beat_key(req: ExperienceSyncRequest, bucket: int) -> str:
    return f"id:{req.beat_id}" if req.beat_id else f"bucket:{bucket}"


def sync_experience(db: Session, student_id: str, req: ExperienceSyncRequest) -> Tuple[ModuleExperience, bool]:
    """Accumulate one heartbeat. Returns the module totals and whether it was a duplicate."""
    stats = req.module_stats
    ts = parse_timestamp(req.timestamp) or datetime.now(timezone.utc)
    bucket = bucket_of(ts)
    key = beat_key(req, bucket)

    exp = (
        db.query(ModuleExperience)
        .filter(
            ModuleExperience.student_id == student_id,
            ModuleExperience.course_id == req.course_id,
            ModuleExperience.module_id == stats.module_id,
        )
        .first()
    )
    if exp is None:
        exp = ModuleExperience(
            student_id=student_id,
            course_id=req.course_id,
            module_id=stats.module_id,
            time_spent=0.0,
            scroll_depth=0,
            beats=0,
        )
        db.add(exp)

    try:
        db.add(ExperienceBeat(student_id=student_id, module_id=stats.module_id, bucket=bucket, beat_key=key))
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.debug("duplicate heartbeat student_id=%s module_id=%s key=%s", student_id, stats.module_id, key)
        current = (
            db.query(ModuleExperience)
            .filter(
                ModuleExperience.student_id == student_id,
                ModuleExperience.course_id == req.course_id,
                ModuleExperience.module_id == stats.module_id,
            )
            .first()
        )
        return current, True

    exp.time_spent = float(exp.time_spent or 0.0) + max(float(stats.time_spent), 0.0)
    exp.scroll_depth = max(int(exp.scroll_depth or 0), min(max(int(stats.scroll_depth), 0), 100))
    exp.beats = int(exp.beats or 0) + 1
    exp.last_accessed = datetime.utcnow()
    db.commit()
    db.refresh(exp)
    return exp, False
