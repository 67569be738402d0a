"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import sys
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add project root and src to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from coursegate.errors import TransientNetworkError  # noqa: E402
from coursegate.gating.types import Course, Module, ModuleType, StoreOrigin  # noqa: E402
from coursegate.progress.repository import ProgressRepository  # noqa: E402

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ----- Clock / executor -----
class FixedClock:
    """Callable clock that tests advance explicitly."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:  # surfaced through the future, as a thread pool would
            future.set_exception(e)
        return future


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


# ----- Progress repositories -----
class FakeRepository(ProgressRepository):
    """In-memory ProgressRepository that can be switched offline."""

    def __init__(self, origin: StoreOrigin):
        self.origin = origin
        self.rows = {}
        self.upserts = []
        self.offline = False

    def upsert(self, record):
        self.upserts.append(record.module_id)
        if self.offline:
            raise TransientNetworkError(f"{self.origin.value} offline")
        self.rows[record.key] = record
        return record

    def fetch_course(self, student_id, course_id):
        if self.offline:
            raise TransientNetworkError(f"{self.origin.value} offline")
        return {
            k.module_id: r for k, r in self.rows.items()
            if k.student_id == student_id and k.course_id == course_id
        }


@pytest.fixture
def document_repo():
    return FakeRepository(StoreOrigin.DOCUMENT)


@pytest.fixture
def relational_repo():
    return FakeRepository(StoreOrigin.RELATIONAL)


# ----- Engine courses -----
def make_course(*types: ModuleType, course_id: str = "course-1") -> Course:
    return Course.from_modules(
        course_id,
        [Module(id=f"m{i}", order=i, type=t, title=f"Module {i}") for i, t in enumerate(types)],
    )


@pytest.fixture
def quiz_course():
    """quiz -> lecture -> final assessment."""
    return make_course(ModuleType.QUIZ, ModuleType.LECTURE, ModuleType.FINAL_ASSESSMENT)


@pytest.fixture
def course_factory():
    return make_course


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """Create an in-memory SQLite engine for tests."""
    return create_engine("sqlite:///:memory:", echo=False)


@pytest.fixture
def db_session(in_memory_engine):
    """Create an in-memory database session. Uses api.config.Base for schema."""
    from api.config import Base
    import api.models.models  # noqa: F401
    Base.metadata.create_all(in_memory_engine)
    SessionLocal = sessionmaker(bind=in_memory_engine)
    session = SessionLocal()
    yield session
    session.close()


QUIZ = [
    {"id": "q1", "question": "2 + 2?", "options": ["3", "4", "5"], "correctAnswer": 1},
    {"id": "q2", "question": "Capital of France?", "options": ["Paris", "Rome"], "correctAnswer": "Paris"},
    {"id": "q3", "question": "Largest planet?", "options": ["Mars", "Jupiter"], "correctAnswer": "1"},
    {"id": "q4", "question": "H2O is?", "options": ["Water", "Salt"], "correctAnswer": 0},
]


@pytest.fixture
def test_course(db_session):
    """A stored course: quiz (m0) -> lecture (m1) -> final exam (m2)."""
    from api.models.models import Course as DbCourse, Module as DbModule
    course = DbCourse(id="test-course-123", title="Web Security Fundamentals")
    course.modules = [
        DbModule(id="m0", order_index=0, title="Basics quiz", module_type="quiz", quiz=QUIZ),
        DbModule(id="m1", order_index=1, title="Reading", module_type="lecture"),
        DbModule(id="m2", order_index=2, title="Final", module_type="final_assessment", quiz=QUIZ),
    ]
    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)
    return course
