"""
Answer keys as persisted by content authoring.

Questions store `correctAnswer` either as an option index or as the option's
text, and both forms occur in the same data set. Keys are normalized once into
an `IndexKey` or a `TextKey` and compared through `matches`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union


@dataclass(frozen=True)
class IndexKey:
    index: int


@dataclass(frozen=True)
class TextKey:
    text: str


AnswerKey = Union[IndexKey, TextKey]


def _as_index(raw: object) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        s = raw.strip()
        if s.lstrip("-").isdigit():
            return int(s)
    return None


def parse_answer_key(raw: object, options: Sequence[str] = ()) -> Optional[AnswerKey]:
    """
    Normalize a stored `correctAnswer`.

    Text that names one of the options wins over a numeric reading, so an
    option literally labelled "2" is matched by text rather than as index 2.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (IndexKey, TextKey)):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if any(isinstance(o, str) and o.strip() == text for o in options):
            return TextKey(text)
    idx = _as_index(raw)
    if idx is not None:
        return IndexKey(idx)
    return TextKey(str(raw).strip())


def normalize_selection(raw: object) -> Optional[int]:
    """Learner's selected option index, or None when absent or unreadable."""
    return _as_index(raw)


def matches(key: Optional[AnswerKey], options: Sequence[str], selected: Optional[int]) -> bool:
    """True when `selected` answers the question. Out-of-range selections never match."""
    if key is None or selected is None:
        return False
    if selected < 0 or selected >= len(options):
        return False
    if isinstance(key, IndexKey):
        return selected == key.index
    option = options[selected]
    return isinstance(option, str) and option.strip() == key.text
