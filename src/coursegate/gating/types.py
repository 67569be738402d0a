from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Optional, Set

from coursegate.errors import NotFoundError, ValidationError

DEFAULT_PASS_THRESHOLD = 70


class ModuleType(str, Enum):
    LECTURE = "lecture"
    QUIZ = "quiz"
    INITIAL_ASSESSMENT = "initial_assessment"
    FINAL_ASSESSMENT = "final_assessment"

    @classmethod
    def parse(cls, value: object) -> "ModuleType":
        """Lenient parse for persisted data; unknown or missing types read as lectures."""
        if isinstance(value, ModuleType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LECTURE


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


class StoreOrigin(str, Enum):
    """Which backend owns a module's progress rows."""

    RELATIONAL = "relational"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Module:
    """
    One unit of course content, optionally followed by a graded quiz.

    `score` is None until an assessment result exists. `origin` is optional
    store metadata used by the progress store to pick its backends.
    """

    id: str
    order: int
    type: ModuleType = ModuleType.LECTURE
    pass_threshold: int = DEFAULT_PASS_THRESHOLD
    completed: bool = False
    score: Optional[int] = None
    completed_topics: frozenset = field(default_factory=frozenset)
    title: str = ""
    proctored: Optional[bool] = None
    origin: Optional[StoreOrigin] = None

    @property
    def is_proctored(self) -> bool:
        if self.proctored is not None:
            return self.proctored
        return self.type in (ModuleType.INITIAL_ASSESSMENT, ModuleType.FINAL_ASSESSMENT)

    @property
    def is_diagnostic(self) -> bool:
        return self.type == ModuleType.INITIAL_ASSESSMENT

    def with_progress(
        self,
        *,
        completed: bool,
        score: Optional[int] = None,
        completed_topics: Optional[Iterable[str]] = None,
    ) -> "Module":
        topics = self.completed_topics if completed_topics is None else frozenset(completed_topics)
        return replace(self, completed=completed, score=score, completed_topics=topics)


@dataclass(frozen=True)
class Course:
    """Ordered list of modules. Exactly one module per order slot in [0, len)."""

    id: str
    modules: tuple = ()
    title: str = ""

    @classmethod
    def from_modules(cls, course_id: str, modules: Iterable[Module], title: str = "") -> "Course":
        ordered = sorted(modules, key=lambda m: m.order)
        orders = [m.order for m in ordered]
        if orders != list(range(len(ordered))):
            raise ValidationError(f"course {course_id}: module orders must be contiguous from 0, got {orders}")
        ids: Set[str] = set()
        for m in ordered:
            if not m.id:
                raise ValidationError(f"course {course_id}: module at order {m.order} has no id")
            if m.id in ids:
                raise ValidationError(f"course {course_id}: duplicate module id {m.id}")
            ids.add(m.id)
        return cls(id=course_id, modules=tuple(ordered), title=title)

    def index_of(self, module_id: str) -> int:
        for i, m in enumerate(self.modules):
            if m.id == module_id:
                return i
        raise NotFoundError(f"module {module_id} not found in course {self.id}")

    def module(self, module_id: str) -> Module:
        return self.modules[self.index_of(module_id)]

    def as_list(self) -> List[Module]:
        return list(self.modules)
