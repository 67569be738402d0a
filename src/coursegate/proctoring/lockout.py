"""
Lockout policy: how long assessment access is suspended after repeated
integrity violations.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from coursegate.config import DEFAULT_CONFIG
from coursegate.gating.types import ModuleType

STANDARD_LOCKOUT = DEFAULT_CONFIG.standard_lockout
FINAL_EXAM_LOCKOUT = DEFAULT_CONFIG.final_exam_lockout

# Module ids that are final exams regardless of their stored type.
FINAL_EXAM_MODULE_IDS = frozenset({"final-exam", "vu-final-exam"})


class LockoutTier(str, Enum):
    STANDARD = "standard"
    FINAL_EXAM = "final_exam"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_final_exam(module_type: Union[ModuleType, str, None], module_id: Optional[str]) -> bool:
    if module_id and module_id.strip().lower() in FINAL_EXAM_MODULE_IDS:
        return True
    if module_type is None:
        return False
    raw = module_type.value if isinstance(module_type, ModuleType) else str(module_type).strip().lower()
    return raw == ModuleType.FINAL_ASSESSMENT.value


def lockout_tier(module_type: Union[ModuleType, str, None], module_id: Optional[str] = None) -> LockoutTier:
    return LockoutTier.FINAL_EXAM if _is_final_exam(module_type, module_id) else LockoutTier.STANDARD


def lockout_duration(module_type: Union[ModuleType, str, None], module_id: Optional[str] = None) -> timedelta:
    """Three hours for final exams, one hour for anything else (unknown types included)."""
    if lockout_tier(module_type, module_id) == LockoutTier.FINAL_EXAM:
        return FINAL_EXAM_LOCKOUT
    return STANDARD_LOCKOUT


def lockout_until(
    module_type: Union[ModuleType, str, None],
    now: Optional[datetime] = None,
    module_id: Optional[str] = None,
) -> datetime:
    return (now or utcnow()) + lockout_duration(module_type, module_id)


def remaining_seconds(locked_until: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole seconds left on a lockout, rounded up; 0 when unlocked or expired."""
    if locked_until is None:
        return 0
    now = now or utcnow()
    if locked_until.tzinfo is None:
        locked_until = locked_until.replace(tzinfo=timezone.utc)
    delta = (locked_until - now).total_seconds()
    if delta <= 0:
        return 0
    whole = int(delta)
    return whole if whole == delta else whole + 1


def format_remaining(seconds: int, tier: LockoutTier = LockoutTier.STANDARD) -> str:
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        span = f"{hours}h {minutes:02d}m"
    elif minutes:
        span = f"{minutes}m {secs:02d}s"
    else:
        span = f"{secs}s"
    label = "Final exam" if tier == LockoutTier.FINAL_EXAM else "Assessment"
    return f"{label} locked due to proctoring violations. Try again in {span}."
