"""Unit tests for common utils (mapping stored rows onto engine types)."""
from datetime import datetime, timedelta, timezone
import pytest

from api.models.models import Module as DbModule
from api.utils.common import get_db_module, iso_format, load_course, to_engine_module
from coursegate.errors import NotFoundError
from coursegate.gating.types import ModuleType, StoreOrigin


@pytest.mark.unit
class TestIsoFormat:
    def test_appends_z(self):
        dt = datetime(2025, 1, 15, 12, 30, 0)
        result = iso_format(dt)
        assert result.endswith("Z")
        assert "2025" in result and "01" in result

    def test_aware_is_converted_to_utc(self):
        dt = datetime(2025, 1, 15, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert iso_format(dt) == "2025-01-15T12:30:00Z"

    def test_none(self):
        assert iso_format(None) is None


@pytest.mark.unit
class TestToEngineModule:
    def test_defaults(self):
        m = to_engine_module(DbModule(id="m0", order_index=0, title="Intro", module_type="quiz"))
        assert m.type == ModuleType.QUIZ
        assert m.pass_threshold == 70
        assert m.origin is None
        assert m.completed is False

    def test_unknown_type_reads_as_lecture(self):
        m = to_engine_module(DbModule(id="m0", order_index=0, module_type="workshop"))
        assert m.type == ModuleType.LECTURE

    def test_origin_and_threshold(self):
        m = to_engine_module(
            DbModule(id="m0", order_index=0, module_type="final_assessment", pass_threshold=80, origin="relational")
        )
        assert m.origin == StoreOrigin.RELATIONAL
        assert m.pass_threshold == 80
        assert m.is_proctored

    def test_bad_origin_is_ignored(self):
        m = to_engine_module(DbModule(id="m0", order_index=0, module_type="quiz", origin="mainframe"))
        assert m.origin is None


@pytest.mark.unit
class TestLoadCourse:
    def test_orders_modules(self, db_session, test_course):
        course = load_course(test_course.id, db_session)
        assert [m.id for m in course.modules] == ["m0", "m1", "m2"]
        assert course.index_of("m2") == 2
        assert course.title == "Web Security Fundamentals"

    def test_missing_course(self, db_session):
        with pytest.raises(NotFoundError):
            load_course("nope", db_session)

    def test_get_db_module(self, db_session, test_course):
        assert get_db_module("m1", db_session).module_type == "lecture"
        with pytest.raises(NotFoundError):
            get_db_module("missing", db_session)
