"""
Assessment attempt schemas.
"""

from typing import Any, Optional, Union

from api.schemas.base import CamelModel


class StartAssessmentRequest(CamelModel):
    module_id: str


class QuestionOut(CamelModel):
    """A question as shown to the learner (no answer key)."""
    id: str
    question: str
    options: list[str]


class StartAssessmentResponse(CamelModel):
    attempt_id: str
    module_id: str
    duration_seconds: float
    max_warnings: int
    proctored: bool
    questions: list[QuestionOut]


class SubmitAssessmentRequest(CamelModel):
    module_id: str
    # positional list (possibly sparse) or {questionId: selectedIndex}
    answers: Union[list[Optional[Any]], dict[str, Any]]
    proctoring_session_id: str


class QuestionResultOut(CamelModel):
    question_id: str
    submitted: Optional[int] = None
    correct: bool


class SubmitAssessmentResponse(CamelModel):
    attempt_id: str
    score: int
    passed: bool
    correct_count: int
    total_questions: int
    retake_required: bool
    diagnostic: bool = False
    details: list[QuestionResultOut] = []


class LockedOutResponse(CamelModel):
    detail: str
    locked_until: str
    remaining_seconds: int
    tier: str
