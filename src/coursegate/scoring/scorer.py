from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from coursegate.gating.types import DEFAULT_PASS_THRESHOLD, ModuleType
from coursegate.scoring.answer_key import AnswerKey, matches, normalize_selection, parse_answer_key


@dataclass(frozen=True)
class Question:
    id: str
    options: tuple
    correct_answer: Optional[AnswerKey]
    text: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], position: int = 0) -> "Question":
        """Build from persisted quiz data (`correctAnswer`, `correct_answer` or `correct_option`)."""
        options = data.get("options") or []
        if not isinstance(options, (list, tuple)):
            options = []
        options = tuple(str(o) if o is not None else "" for o in options)
        raw_key = data.get("correctAnswer", data.get("correct_answer", data.get("correct_option")))
        qid = data.get("id") or data.get("_id") or data.get("questionId") or str(position)
        return cls(
            id=str(qid),
            options=options,
            correct_answer=parse_answer_key(raw_key, options),
            text=str(data.get("question") or data.get("text") or ""),
        )


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    submitted: Optional[int]
    correct: bool


@dataclass(frozen=True)
class ScoreResult:
    score: int
    passed: bool
    correct_count: int
    total: int
    diagnostic: bool = False
    details: List[QuestionResult] = field(default_factory=list)

    @property
    def retake_required(self) -> bool:
        return not self.passed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "passed": self.passed,
            "correctCount": self.correct_count,
            "totalQuestions": self.total,
            "retakeRequired": self.retake_required,
            "diagnostic": self.diagnostic,
            "details": [
                {"questionId": d.question_id, "submitted": d.submitted, "correct": d.correct}
                for d in self.details
            ],
        }


UserAnswers = Union[Sequence[Optional[object]], Mapping[int, object]]


def _coerce_question(q: Union[Question, Mapping[str, Any]], position: int) -> Question:
    return q if isinstance(q, Question) else Question.from_dict(q, position)


def _answer_at(user_answers: UserAnswers, position: int) -> Optional[object]:
    if isinstance(user_answers, Mapping):
        return user_answers.get(position)
    if position < len(user_answers):
        return user_answers[position]
    return None


def percentage(correct: int, total: int) -> int:
    """Rounded percentage, halves rounded up; an empty set scores 0."""
    total = max(total, 1)
    return (correct * 200 + total) // (2 * total)


def answers_from_mapping(
    questions: Sequence[Union[Question, Mapping[str, Any]]],
    answers: Mapping[str, object],
) -> List[Optional[object]]:
    """Turn a `{questionId: selectedIndex}` body into a positional, possibly sparse list."""
    out: List[Optional[object]] = []
    for i, q in enumerate(questions):
        question = _coerce_question(q, i)
        out.append(answers.get(question.id))
    return out


def score(
    questions: Sequence[Union[Question, Mapping[str, Any]]],
    user_answers: UserAnswers,
    module_type: Union[ModuleType, str, None] = None,
    pass_threshold: int = DEFAULT_PASS_THRESHOLD,
) -> ScoreResult:
    """
    Score one attempt.

    Missing, unreadable or out-of-range answers count as incorrect. An
    initial assessment reports its raw score but is always passed for gating.
    """
    details: List[QuestionResult] = []
    correct_count = 0
    for i, q in enumerate(questions):
        question = _coerce_question(q, i)
        selected = normalize_selection(_answer_at(user_answers, i))
        ok = matches(question.correct_answer, question.options, selected)
        if ok:
            correct_count += 1
        details.append(QuestionResult(question_id=question.id, submitted=selected, correct=ok))

    total = len(details)
    value = percentage(correct_count, total)
    diagnostic = module_type is not None and ModuleType.parse(module_type) == ModuleType.INITIAL_ASSESSMENT
    return ScoreResult(
        score=value,
        passed=diagnostic or value >= pass_threshold,
        correct_count=correct_count,
        total=total,
        diagnostic=diagnostic,
        details=details,
    )
