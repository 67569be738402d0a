"""
Inbound proctoring events.

Browser and environment signals (visibility, blur, fullscreen, face
detection) arrive from independently registered sources; they are all
turned into one of these variants and fed to a single reducer per session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Type


@dataclass(frozen=True)
class ProctorEvent:
    session_id: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Violation(ProctorEvent):
    kind: ClassVar[str] = "violation"


@dataclass(frozen=True)
class TabHidden(Violation):
    kind: ClassVar[str] = "tab-switch"


@dataclass(frozen=True)
class WindowBlur(Violation):
    kind: ClassVar[str] = "window-blur"


@dataclass(frozen=True)
class FullscreenExit(Violation):
    kind: ClassVar[str] = "exit-fullscreen"


@dataclass(frozen=True)
class FaceAbsent(Violation):
    kind: ClassVar[str] = "face-violation"


@dataclass(frozen=True)
class Submit(ProctorEvent):
    pass


@dataclass(frozen=True)
class NavigateAway(ProctorEvent):
    pass


VIOLATION_KINDS: Dict[str, Type[Violation]] = {
    cls.kind: cls for cls in (TabHidden, WindowBlur, FullscreenExit, FaceAbsent)
}


def violation_for(kind: str, session_id: str, details: Dict[str, Any] | None = None) -> Violation:
    try:
        cls = VIOLATION_KINDS[kind]
    except KeyError:
        raise ValueError(f"unknown violation kind: {kind}") from None
    return cls(session_id=session_id, details=dict(details or {}))
