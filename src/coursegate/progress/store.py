"""
Local-first progress store.

Every write lands in the in-memory cache synchronously, so callers never wait
on the network. A background worker then pushes the record to the backends.
A failed push does not roll back the cache: the record stays dirty and is
retried on the next reconcile cycle (driven by the heartbeat). Reads from the
server are authoritative and overwrite the cache.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from coursegate.errors import ValidationError
from coursegate.gating.types import Course, Module, StoreOrigin
from coursegate.proctoring.lockout import remaining_seconds, utcnow
from coursegate.progress.repository import ProgressRepository
from coursegate.progress.types import ProgressKey, ProgressRecord, is_uuid

logger = logging.getLogger(__name__)

RebalanceHook = Callable[[str, str], Any]


class ProgressStore:
    def __init__(
        self,
        document: ProgressRepository,
        relational: Optional[ProgressRepository] = None,
        *,
        rebalance: Optional[RebalanceHook] = None,
        executor: Optional[Executor] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.document = document
        self.relational = relational
        self._rebalance = rebalance
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="progress-sync")
        self._clock = clock
        self._lock = threading.RLock()
        self._cache: Dict[ProgressKey, ProgressRecord] = {}
        self._versions: Dict[ProgressKey, int] = {}
        self._dirty: Set[ProgressKey] = set()
        self._origins: Dict[str, StoreOrigin] = {}
        self._pending: List[Future] = []

    # ----- cache reads -------------------------------------------------
    def get(self, student_id: str, course_id: str, module_id: str) -> Optional[ProgressRecord]:
        with self._lock:
            return self._cache.get(ProgressKey(student_id, course_id, module_id))

    def is_dirty(self, student_id: str, course_id: str, module_id: str) -> bool:
        with self._lock:
            return ProgressKey(student_id, course_id, module_id) in self._dirty

    def snapshot(self, course: Course, student_id: str) -> List[Module]:
        """The course's modules overlaid with cached progress. Never touches the network."""
        out: List[Module] = []
        with self._lock:
            for m in course.modules:
                rec = self._cache.get(ProgressKey(student_id, course.id, m.id))
                if rec is None:
                    out.append(m)
                else:
                    out.append(m.with_progress(completed=rec.completed, score=rec.quiz_score, completed_topics=rec.completed_topics))
        return out

    def register_course(self, course: Course) -> None:
        """Remember which backend owns each module, when the content store says so."""
        with self._lock:
            for m in course.modules:
                if m.origin is not None:
                    self._origins[m.id] = m.origin

    def lockout_remaining(self, student_id: str, course_id: str, module_id: str, now: Optional[datetime] = None) -> int:
        rec = self.get(student_id, course_id, module_id)
        return remaining_seconds(rec.locked_until if rec else None, now or self._clock())

    # ----- optimistic writes -------------------------------------------
    def update(
        self,
        student_id: str,
        course_id: str,
        module_id: str,
        *,
        completed: Optional[bool] = None,
        quiz_score: Optional[int] = None,
        completed_topics: Optional[Iterable[str]] = None,
        locked_until: Optional[datetime] = None,
        origin: Optional[StoreOrigin] = None,
    ) -> ProgressRecord:
        if not student_id or not course_id or not module_id:
            raise ValidationError("student_id, course_id and module_id are required")
        key = ProgressKey(student_id, course_id, module_id)
        with self._lock:
            if origin is not None:
                self._origins[module_id] = origin
            before = self._cache.get(key) or ProgressRecord(student_id, course_id, module_id)
            after = before.merged(
                completed=completed,
                quiz_score=quiz_score,
                completed_topics=completed_topics,
                locked_until=locked_until,
            )
            self._cache[key] = after
            self._versions[key] = self._versions.get(key, 0) + 1
            self._dirty.add(key)
            newly_completed = after.completed and not before.completed
        self._submit(self._push, key)
        if newly_completed and self._rebalance is not None:
            self._submit(self._run_rebalance, student_id, course_id)
        return after

    def complete_module(
        self,
        student_id: str,
        course_id: str,
        module_id: str,
        score: Optional[int] = None,
        topics: Optional[Iterable[str]] = None,
    ) -> ProgressRecord:
        return self.update(student_id, course_id, module_id, completed=True, quiz_score=score, completed_topics=topics)

    def record_result(self, student_id: str, course_id: str, module_id: str, result: Any) -> ProgressRecord:
        """Persist a scored attempt: the module is completed and carries the raw score."""
        return self.complete_module(student_id, course_id, module_id, score=int(result.score))

    def complete_topic(self, student_id: str, course_id: str, module_id: str, topic: str) -> ProgressRecord:
        current = self.get(student_id, course_id, module_id)
        topics = set(current.completed_topics) if current else set()
        topics.add(topic)
        return self.update(student_id, course_id, module_id, completed_topics=topics)

    def set_lockout(self, student_id: str, course_id: str, module_id: str, until: datetime) -> ProgressRecord:
        if until <= self._clock():
            raise ValidationError("lockout must end in the future")
        return self.update(student_id, course_id, module_id, locked_until=until)

    # ----- reconciliation ----------------------------------------------
    def targets(self, module_id: str) -> List[ProgressRepository]:
        """
        Backends a module's progress is written to.

        The document store is always written. The relational store is used
        when the module is known to live there, or, lacking that metadata,
        when its id is UUID-shaped.
        """
        out = [self.document]
        if self.relational is None:
            return out
        with self._lock:
            origin = self._origins.get(module_id)
        if origin == StoreOrigin.RELATIONAL or (origin is None and is_uuid(module_id)):
            out.append(self.relational)
        else:
            logger.debug("skipping relational progress target for module_id=%s", module_id)
        return out

    def _push(self, key: ProgressKey) -> bool:
        with self._lock:
            record = self._cache.get(key)
            version = self._versions.get(key, 0)
        if record is None:
            return True
        ok = True
        for target in self.targets(key.module_id):
            try:
                target.upsert(record)
            except Exception as e:
                ok = False
                logger.warning(
                    "progress sync failed target=%s module_id=%s: %s",
                    target.origin.value, key.module_id, e,
                )
        if ok:
            with self._lock:
                current = self._cache.get(key)
                if self._versions.get(key, 0) == version and current is not None:
                    self._cache[key] = replace(current, last_synced_at=self._clock())
                    self._dirty.discard(key)
        return ok

    def _run_rebalance(self, student_id: str, course_id: str) -> None:
        try:
            self._rebalance(student_id, course_id)
        except Exception:
            logger.warning("learning path rebalance failed student_id=%s course_id=%s", student_id, course_id, exc_info=True)

    def reconcile(self) -> List[Future]:
        """Retry every record whose last push failed."""
        with self._lock:
            keys = list(self._dirty)
        return [self._submit(self._push, k) for k in keys]

    def refresh(self, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
        """
        Fetch server state and let it overwrite the cache.

        Dirty records are pushed first so a completion made while offline is
        not lost to a stale read. On fetch failure the cached view is returned.
        """
        with self._lock:
            dirty = [k for k in self._dirty if k.student_id == student_id and k.course_id == course_id]
        for key in dirty:
            self._push(key)
        with self._lock:
            seen = {
                k: v for k, v in self._versions.items()
                if k.student_id == student_id and k.course_id == course_id
            }
        fetched: Dict[str, ProgressRecord] = {}
        try:
            fetched.update(self.document.fetch_course(student_id, course_id))
            if self.relational is not None:
                fetched.update(self.relational.fetch_course(student_id, course_id))
        except Exception as e:
            logger.warning("progress refresh failed course_id=%s: %s", course_id, e)
            return self._cached_course(student_id, course_id)

        now = self._clock()
        with self._lock:
            for module_id, server in fetched.items():
                key = ProgressKey(student_id, course_id, module_id)
                if self._versions.get(key, 0) != seen.get(key, 0):
                    # written locally while the fetch was in flight; the local
                    # record is newer and stays dirty for the next push
                    logger.debug("refresh kept newer local record module_id=%s", module_id)
                    continue
                local = self._cache.get(key)
                lock = server.locked_until
                if local is not None and local.locked_until is not None and (lock is None or local.locked_until > lock):
                    lock = local.locked_until
                self._cache[key] = ProgressRecord(
                    student_id=student_id,
                    course_id=course_id,
                    module_id=module_id,
                    completed=server.completed,
                    quiz_score=server.quiz_score,
                    completed_topics=server.completed_topics,
                    locked_until=lock,
                    last_synced_at=now,
                )
                self._versions[key] = self._versions.get(key, 0) + 1
                self._dirty.discard(key)
        return self._cached_course(student_id, course_id)

    def _cached_course(self, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
        with self._lock:
            return {
                k.module_id: r for k, r in self._cache.items()
                if k.student_id == student_id and k.course_id == course_id
            }

    # ----- worker plumbing ---------------------------------------------
    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        future = self._executor.submit(fn, *args)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)
        return future

    def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for queued background writes (used on teardown and in tests)."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        self.drain()
        if isinstance(self._executor, ThreadPoolExecutor):
            self._executor.shutdown(wait=True)
