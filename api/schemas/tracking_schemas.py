"""
Collector schemas: proctoring log ingest and engagement heartbeats.
"""

from datetime import datetime
from typing import Any, Optional

from api.schemas.base import CamelModel


class ProctorIngestRequest(CamelModel):
    event_id: Optional[str] = None
    student_id: Optional[str] = None
    course_id: str
    attempt_id: Optional[str] = None
    event_type: str
    details: dict[str, Any] = {}
    timestamp: Optional[datetime] = None


class IngestResponse(CamelModel):
    accepted: bool
    duplicate: bool = False


class ModuleStats(CamelModel):
    module_id: str
    time_spent: float = 0.0
    scroll_depth: int = 0


class ExperienceSyncRequest(CamelModel):
    beat_id: Optional[str] = None
    student_id: Optional[str] = None
    course_id: str
    module_stats: ModuleStats
    timestamp: Optional[datetime] = None


class ExperienceSyncResponse(CamelModel):
    accepted: bool
    duplicate: bool = False
    time_spent: float
    scroll_depth: int
