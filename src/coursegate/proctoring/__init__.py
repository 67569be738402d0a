from coursegate.proctoring.countdown import AttemptCountdown
from coursegate.proctoring.events import (
    VIOLATION_KINDS,
    FaceAbsent,
    FullscreenExit,
    NavigateAway,
    ProctorEvent,
    Submit,
    TabHidden,
    Violation,
    WindowBlur,
    violation_for,
)
from coursegate.proctoring.lockout import (
    LockoutTier,
    format_remaining,
    lockout_duration,
    lockout_tier,
    lockout_until,
    remaining_seconds,
)
from coursegate.proctoring.monitor import ProctorMonitor
from coursegate.proctoring.reducer import (
    Lock,
    LogViolation,
    ProctorState,
    ProctorStatus,
    Teardown,
    Transition,
    Warn,
    armed,
    reduce,
)
from coursegate.proctoring.signals import SignalBus

__all__ = [
    "AttemptCountdown",
    "FaceAbsent",
    "FullscreenExit",
    "Lock",
    "LockoutTier",
    "LogViolation",
    "NavigateAway",
    "ProctorEvent",
    "ProctorMonitor",
    "ProctorState",
    "ProctorStatus",
    "SignalBus",
    "Submit",
    "TabHidden",
    "Teardown",
    "Transition",
    "VIOLATION_KINDS",
    "Violation",
    "Warn",
    "WindowBlur",
    "armed",
    "format_remaining",
    "lockout_duration",
    "lockout_tier",
    "lockout_until",
    "reduce",
    "remaining_seconds",
    "violation_for",
]
