"""
Progress API schemas (`PUT /progress/{courseId}/{moduleId}`, `GET /progress/{courseId}`).
"""

from datetime import datetime
from typing import Optional

from api.schemas.base import CamelModel
from coursegate.progress.types import ProgressRecord


class ProgressUpdateRequest(CamelModel):
    completed: bool
    quiz_score: Optional[int] = None
    completed_topics: Optional[list[str]] = None
    locked_until: Optional[datetime] = None


class ProgressItem(CamelModel):
    completed: bool
    quiz_score: Optional[int] = None
    completed_topics: list[str] = []
    locked_until: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: ProgressRecord) -> "ProgressItem":
        return cls(
            completed=record.completed,
            quiz_score=record.quiz_score,
            completed_topics=sorted(record.completed_topics),
            locked_until=record.locked_until,
        )


class ProgressResponse(ProgressItem):
    module_id: str
    course_id: str
