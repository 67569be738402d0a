"""
Error taxonomy for the progression engine.

Integrity violations are not errors: they are `ProctorEvent` inputs to the
proctoring reducer (see `coursegate.proctoring.events`).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class CoursegateError(Exception):
    """Base class for engine errors."""


class ValidationError(CoursegateError):
    """Malformed ids, answers or course structure. Rejected, never retried."""


class NotFoundError(CoursegateError):
    """Missing module or course. Terminal for the caller."""


class TransientNetworkError(CoursegateError):
    """
    Telemetry or progress write failure.

    Swallowed at the call site and retried by the next periodic cycle.
    """


class LockedOutError(CoursegateError):
    """Assessment entry attempted while a proctoring lockout is in force."""

    def __init__(self, locked_until: datetime, remaining_seconds: int, tier: str, message: Optional[str] = None):
        self.locked_until = locked_until
        self.remaining_seconds = remaining_seconds
        self.tier = tier
        super().__init__(message or f"Assessment locked for another {remaining_seconds}s")
