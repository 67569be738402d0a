from coursegate.scoring.answer_key import AnswerKey, IndexKey, TextKey, matches, normalize_selection, parse_answer_key
from coursegate.scoring.scorer import Question, QuestionResult, ScoreResult, answers_from_mapping, percentage, score

__all__ = [
    "AnswerKey",
    "IndexKey",
    "TextKey",
    "Question",
    "QuestionResult",
    "ScoreResult",
    "answers_from_mapping",
    "matches",
    "normalize_selection",
    "parse_answer_key",
    "percentage",
    "score",
]
