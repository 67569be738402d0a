from coursegate.progress.repository import ProgressRepository
from coursegate.progress.store import ProgressStore
from coursegate.progress.types import ProgressKey, ProgressRecord, is_uuid, parse_timestamp

__all__ = [
    "ProgressKey",
    "ProgressRecord",
    "ProgressRepository",
    "ProgressStore",
    "is_uuid",
    "parse_timestamp",
]
