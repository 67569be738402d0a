from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

PROCTOR_INGEST_PATH = "/proctor/ingest"
EXPERIENCE_SYNC_PATH = "/experience/sync"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProctorLogEvent:
    """One proctoring signal. `event_id` lets the collector drop redeliveries."""

    student_id: str
    course_id: str
    attempt_id: str
    event_type: str
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)
    event_id: str = field(default_factory=lambda: str(uuid4()))

    path = PROCTOR_INGEST_PATH

    def to_payload(self) -> Dict[str, Any]:
        return {
            "eventId": self.event_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "attemptId": self.attempt_id,
            "eventType": self.event_type,
            "details": dict(self.details),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class HeartbeatEvent:
    """Engagement since the previous heartbeat for one module. `beat_id` identifies redeliveries."""

    student_id: str
    course_id: str
    module_id: str
    time_spent: float
    scroll_depth: int
    timestamp: datetime = field(default_factory=_now)
    beat_id: str = field(default_factory=lambda: str(uuid4()))

    path = EXPERIENCE_SYNC_PATH

    def to_payload(self) -> Dict[str, Any]:
        return {
            "beatId": self.beat_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "moduleStats": {
                "moduleId": self.module_id,
                "timeSpent": round(self.time_spent, 3),
                "scrollDepth": self.scroll_depth,
            },
            "timestamp": self.timestamp.isoformat(),
        }


class TelemetryTransport(ABC):
    """
    Best-effort, non-blocking delivery of discrete events to the collector.

    Implementations must never raise to the caller: network errors, error
    statuses and offline state are logged and dropped. Delivery is
    at-least-once; the collector deduplicates.
    """

    @abstractmethod
    def send(self, path: str, payload: Dict[str, Any]) -> bool:
        """Hand the payload to a delivery channel. Returns False when it was dropped."""

        raise NotImplementedError

    def emit(self, event: Any) -> bool:
        try:
            return self.send(event.path, event.to_payload())
        except Exception:
            logger.warning("telemetry emit failed path=%s", getattr(event, "path", "?"), exc_info=True)
            return False

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until queued events are handed off (used on teardown)."""

    def close(self) -> None:
        self.flush()
