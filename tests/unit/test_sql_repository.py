"""Unit tests for the relational progress repository (in-memory SQLite)."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from coursegate.errors import ValidationError
from coursegate.progress.types import ProgressRecord
from infra.progress.sql_repository import SqlProgressRepository

UUID_MODULE = "3f2b8c1e-9d4a-4e6b-8f1a-2c3d4e5f6a7b"
UNTIL = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(in_memory_engine, db_session):
    # db_session creates the schema on the same engine
    return SqlProgressRepository(sessionmaker(bind=in_memory_engine))


@pytest.mark.unit
class TestSqlProgressRepository:
    def test_upsert_is_idempotent(self, repo):
        rec = ProgressRecord("stu", "c1", UUID_MODULE, completed=True, quiz_score=80, completed_topics=frozenset({"t"}))
        repo.upsert(rec)
        repo.upsert(rec)
        rows = repo.fetch_course("stu", "c1")
        assert list(rows) == [UUID_MODULE]
        assert rows[UUID_MODULE].quiz_score == 80
        assert rows[UUID_MODULE].completed_topics == frozenset({"t"})

    def test_locked_until_never_moves_back(self, repo):
        repo.upsert(ProgressRecord("stu", "c1", UUID_MODULE, locked_until=UNTIL))
        repo.upsert(ProgressRecord("stu", "c1", UUID_MODULE, locked_until=UNTIL - timedelta(hours=2)))
        repo.upsert(ProgressRecord("stu", "c1", UUID_MODULE, completed=True))
        row = repo.fetch_course("stu", "c1")[UUID_MODULE]
        assert row.locked_until == UNTIL
        assert row.completed

    def test_rejects_non_uuid_ids(self, repo):
        with pytest.raises(ValidationError):
            repo.upsert(ProgressRecord("stu", "c1", "intro-slug"))

    def test_students_are_isolated(self, repo):
        repo.upsert(ProgressRecord("a", "c1", UUID_MODULE, completed=True))
        assert repo.fetch_course("b", "c1") == {}
