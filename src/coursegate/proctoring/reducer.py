"""
Proctoring state machine.

    INACTIVE -> ARMED -> WARNING(n) -> LOCKED
                  \\________\\_______-> SUBMITTED -> INACTIVE

`reduce` is pure: it takes the current session state and one event and
returns the next state plus the effects the controller must carry out.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from coursegate.config import DEFAULT_CONFIG
from coursegate.gating.types import ModuleType
from coursegate.proctoring.events import NavigateAway, ProctorEvent, Submit, Violation
from coursegate.proctoring.lockout import LockoutTier, lockout_tier, lockout_until


class ProctorStatus(str, Enum):
    INACTIVE = "inactive"
    ARMED = "armed"
    WARNING = "warning"
    LOCKED = "locked"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class ProctorState:
    session_id: str = ""
    module_id: str = ""
    module_type: ModuleType = ModuleType.QUIZ
    status: ProctorStatus = ProctorStatus.INACTIVE
    violation_count: int = 0
    lockout_until: Optional[datetime] = None
    max_warnings: int = DEFAULT_CONFIG.max_warnings

    @property
    def active(self) -> bool:
        return self.status in (ProctorStatus.ARMED, ProctorStatus.WARNING)

    @property
    def warnings_remaining(self) -> int:
        return max(self.max_warnings - self.violation_count, 0)


@dataclass(frozen=True)
class LogViolation:
    event: Violation
    count: int


@dataclass(frozen=True)
class Warn:
    count: int
    remaining: int

    @property
    def message(self) -> str:
        return f"Suspicious activity detected! You have {self.remaining} warnings remaining."


@dataclass(frozen=True)
class Lock:
    until: datetime
    tier: LockoutTier


@dataclass(frozen=True)
class Teardown:
    reason: str


@dataclass(frozen=True)
class Transition:
    state: ProctorState
    effects: Tuple[object, ...] = field(default_factory=tuple)

    def of(self, kind: type) -> List[object]:
        return [e for e in self.effects if isinstance(e, kind)]


def armed(session_id: str, module_id: str, module_type: ModuleType, max_warnings: int = DEFAULT_CONFIG.max_warnings) -> ProctorState:
    return ProctorState(
        session_id=session_id,
        module_id=module_id,
        module_type=module_type,
        status=ProctorStatus.ARMED,
        violation_count=0,
        max_warnings=max_warnings,
    )


def reduce(state: ProctorState, event: ProctorEvent, now: datetime) -> Transition:
    # Events for another (stale) session and events after the session ended are ignored.
    if event.session_id != state.session_id or not state.active:
        return Transition(state)

    if isinstance(event, Violation):
        count = state.violation_count + 1
        logged = LogViolation(event=event, count=count)
        if count <= state.max_warnings:
            nxt = replace(state, status=ProctorStatus.WARNING, violation_count=count)
            return Transition(nxt, (logged, Warn(count=count, remaining=state.max_warnings - count)))

        until = lockout_until(state.module_type, now, state.module_id)
        if state.lockout_until is not None and state.lockout_until > until:
            until = state.lockout_until
        nxt = replace(state, status=ProctorStatus.LOCKED, violation_count=count, lockout_until=until)
        tier = lockout_tier(state.module_type, state.module_id)
        return Transition(nxt, (logged, Lock(until=until, tier=tier), Teardown("lockout")))

    if isinstance(event, Submit):
        return Transition(replace(state, status=ProctorStatus.SUBMITTED), (Teardown("submit"),))

    if isinstance(event, NavigateAway):
        return Transition(replace(state, status=ProctorStatus.INACTIVE), (Teardown("navigation"),))

    return Transition(state)
