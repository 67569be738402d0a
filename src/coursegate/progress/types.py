from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, NamedTuple, Optional

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_uuid(value: str) -> bool:
    return bool(value) and bool(_UUID_RE.match(value))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read an ISO timestamp (a trailing `Z` included) as an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class ProgressKey(NamedTuple):
    student_id: str
    course_id: str
    module_id: str


@dataclass(frozen=True)
class ProgressRecord:
    student_id: str
    course_id: str
    module_id: str
    completed: bool = False
    quiz_score: Optional[int] = None
    completed_topics: frozenset = field(default_factory=frozenset)
    locked_until: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.student_id, self.course_id, self.module_id)

    def merged(
        self,
        *,
        completed: Optional[bool] = None,
        quiz_score: Optional[int] = None,
        completed_topics: Optional[Iterable[str]] = None,
        locked_until: Optional[datetime] = None,
    ) -> "ProgressRecord":
        """Overwrite the given fields; `locked_until` only ever moves forward."""
        lock = self.locked_until
        if locked_until is not None and (lock is None or locked_until > lock):
            lock = locked_until
        return replace(
            self,
            completed=self.completed if completed is None else bool(completed),
            quiz_score=self.quiz_score if quiz_score is None else int(quiz_score),
            completed_topics=self.completed_topics if completed_topics is None else frozenset(completed_topics),
            locked_until=lock,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Body of `PUT /progress/{courseId}/{moduleId}`."""
        return {
            "completed": self.completed,
            "quizScore": self.quiz_score,
            "completedTopics": sorted(self.completed_topics),
            "lockedUntil": self.locked_until.isoformat() if self.locked_until else None,
        }

    @classmethod
    def from_payload(cls, student_id: str, course_id: str, module_id: str, data: Dict[str, Any]) -> "ProgressRecord":
        score = data.get("quizScore", data.get("quiz_score"))
        return cls(
            student_id=student_id,
            course_id=course_id,
            module_id=module_id,
            completed=bool(data.get("completed", False)),
            quiz_score=int(score) if score is not None else None,
            completed_topics=frozenset(data.get("completedTopics") or data.get("completed_topics") or ()),
            locked_until=parse_timestamp(data.get("lockedUntil", data.get("locked_until"))),
        )
