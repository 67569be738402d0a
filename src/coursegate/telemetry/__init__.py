from coursegate.telemetry.heartbeat import EngagementTracker, scroll_percent
from coursegate.telemetry.transport import (
    EXPERIENCE_SYNC_PATH,
    PROCTOR_INGEST_PATH,
    HeartbeatEvent,
    ProctorLogEvent,
    TelemetryTransport,
)

__all__ = [
    "EXPERIENCE_SYNC_PATH",
    "PROCTOR_INGEST_PATH",
    "EngagementTracker",
    "HeartbeatEvent",
    "ProctorLogEvent",
    "TelemetryTransport",
    "scroll_percent",
]
