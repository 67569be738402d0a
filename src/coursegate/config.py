from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class EngineConfig:
    """Engine constants shared by the client-side controllers and the API."""

    pass_threshold: int = 70
    max_warnings: int = 3
    heartbeat_seconds: float = 30.0
    attempt_seconds: float = 10 * 60
    standard_lockout: timedelta = timedelta(hours=1)
    final_exam_lockout: timedelta = timedelta(hours=3)


DEFAULT_CONFIG = EngineConfig()
