"""
Integration test fixtures. Overrides get_db for API tests with in-memory DB.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

TWENTY = [
    {"id": f"q{i}", "question": f"Question {i}", "options": ["a", "b", "c", "d"], "correctAnswer": i % 4}
    for i in range(20)
]

QUIZ = [
    {"id": "q1", "question": "2 + 2?", "options": ["3", "4", "5"], "correctAnswer": 1},
    {"id": "q2", "question": "Capital of France?", "options": ["Paris", "Rome"], "correctAnswer": "Paris"},
    {"id": "q3", "question": "Largest planet?", "options": ["Mars", "Jupiter"], "correctAnswer": "1"},
    {"id": "q4", "question": "H2O is?", "options": ["Water", "Salt"], "correctAnswer": 0},
]


@pytest.fixture
def session_factory():
    """In-memory engine shared across connections, with the schema created."""
    from api.config import Base
    import api.models.models  # noqa: F401
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def override_get_db(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def api_client(override_get_db):
    """FastAPI TestClient with in-memory DB override."""
    from fastapi.testclient import TestClient
    from api.api import app
    from api.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_course(session_factory):
    """Quiz (m0) -> lecture (m1) -> final exam (m2, proctored by default)."""
    from api.models.models import Course, Module
    db = session_factory()
    try:
        course = Course(id="course-1", title="Web Security Fundamentals")
        course.modules = [
            Module(id="m0", order_index=0, title="Basics quiz", module_type="quiz", quiz=TWENTY),
            Module(id="m1", order_index=1, title="Reading", module_type="lecture"),
            Module(id="m2", order_index=2, title="Final exam", module_type="final_assessment", quiz=QUIZ),
        ]
        db.add(course)
        db.commit()
    finally:
        db.close()
    return "course-1"


def _token(sub: str, role: str = "student") -> str:
    from api.schemas.auth_schemas import AuthTokenPayload
    from api.utils.jwt import create_access_token
    return create_access_token(AuthTokenPayload(sub=sub, role=role))


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {_token('student-1')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {_token('admin-1', 'admin')}"}
