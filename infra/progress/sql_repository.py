from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from api.models.models import ModuleProgress
from coursegate.errors import TransientNetworkError, ValidationError
from coursegate.gating.types import StoreOrigin
from coursegate.progress.repository import ProgressRepository
from coursegate.progress.types import ProgressRecord, is_uuid, parse_timestamp

logger = logging.getLogger(__name__)


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    dt = parse_timestamp(dt)
    return dt.astimezone(timezone.utc)


def row_to_record(row: ModuleProgress) -> ProgressRecord:
    return ProgressRecord(
        student_id=row.student_id,
        course_id=row.course_id,
        module_id=row.module_id,
        completed=bool(row.completed),
        quiz_score=row.quiz_score,
        completed_topics=frozenset(row.completed_topics or ()),
        locked_until=parse_timestamp(row.locked_until),
        last_synced_at=parse_timestamp(row.updated_at),
    )


def upsert_row(db: Session, record: ProgressRecord, _retry: bool = True) -> ModuleProgress:
    """
    Insert or update the row for (student, course, module).

    `locked_until` keeps the later of the stored and incoming values, so a
    stale write can never shorten a lockout. A concurrent insert of the same
    key is resolved by retrying once as an update.
    """
    row = (
        db.query(ModuleProgress)
        .filter(
            ModuleProgress.student_id == record.student_id,
            ModuleProgress.course_id == record.course_id,
            ModuleProgress.module_id == record.module_id,
        )
        .first()
    )
    if row is None:
        row = ModuleProgress(
            id=str(uuid4()),
            student_id=record.student_id,
            course_id=record.course_id,
            module_id=record.module_id,
        )
        db.add(row)
    stored = parse_timestamp(row.locked_until)
    incoming = _utc(record.locked_until)
    if incoming is not None and (stored is None or incoming > stored):
        row.locked_until = incoming
    row.completed = bool(record.completed)
    row.quiz_score = record.quiz_score
    row.completed_topics = sorted(record.completed_topics)
    row.updated_at = datetime.utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not _retry:
            raise
        logger.debug("progress upsert raced, retrying module_id=%s", record.module_id)
        return upsert_row(db, record, _retry=False)
    db.refresh(row)
    return row


def rows_for_course(db: Session, student_id: str, course_id: str) -> Dict[str, ModuleProgress]:
    rows = (
        db.query(ModuleProgress)
        .filter(ModuleProgress.student_id == student_id, ModuleProgress.course_id == course_id)
        .all()
    )
    return {r.module_id: r for r in rows}


class SqlProgressRepository(ProgressRepository):
    """
    Relational progress store.

    Module ids must be UUIDs. Callers route other ids to the document store
    (see `ProgressStore.targets`), so a non-UUID id here is a caller bug.
    """

    origin = StoreOrigin.RELATIONAL

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def upsert(self, record: ProgressRecord) -> ProgressRecord:
        if not is_uuid(record.module_id):
            raise ValidationError(f"relational progress requires a UUID module id, got {record.module_id!r}")
        db = self._session_factory()
        try:
            return row_to_record(upsert_row(db, record))
        except SQLAlchemyError as e:
            raise TransientNetworkError(f"progress upsert failed: {e}") from e
        finally:
            db.close()

    def fetch_course(self, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
        db = self._session_factory()
        try:
            return {
                module_id: row_to_record(row)
                for module_id, row in rows_for_course(db, student_id, course_id).items()
                if is_uuid(module_id)
            }
        except SQLAlchemyError as e:
            raise TransientNetworkError(f"progress fetch failed: {e}") from e
        finally:
            db.close()
