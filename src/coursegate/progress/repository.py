from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

from coursegate.gating.types import StoreOrigin
from coursegate.progress.types import ProgressRecord


class ProgressRepository(ABC):
    """
    Backend contract for progress persistence.

    Two implementations exist: a relational store keyed by UUID module ids and
    a document store / API that accepts arbitrary string ids. Both must write
    with upsert semantics keyed by (student, module) so concurrent sessions on
    several devices never lose updates. Network failures surface as
    `TransientNetworkError`.
    """

    origin: StoreOrigin

    @abstractmethod
    def upsert(self, record: ProgressRecord) -> ProgressRecord:
        raise NotImplementedError

    @abstractmethod
    def fetch_course(self, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
        """All progress rows for the course, keyed by module id."""

        raise NotImplementedError
