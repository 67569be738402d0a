"""
Wall-clock countdown for an assessment attempt.

Independent of the proctoring lockout: when it reaches zero the attempt is
force-submitted with whatever answers have been recorded so far.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional

from coursegate.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class AttemptCountdown:
    def __init__(
        self,
        on_expire: Callable[[List[Optional[int]]], Any],
        seconds: float = DEFAULT_CONFIG.attempt_seconds,
        question_count: int = 0,
    ):
        self.seconds = float(seconds)
        self._on_expire = on_expire
        self._answers: List[Optional[int]] = [None] * question_count
        self._task: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None
        self.expired = False
        self.cancelled = False

    @property
    def answers(self) -> List[Optional[int]]:
        return list(self._answers)

    def answer(self, position: int, selected: int) -> None:
        if position < 0:
            raise IndexError(position)
        if position >= len(self._answers):
            self._answers.extend([None] * (position + 1 - len(self._answers)))
        self._answers[position] = selected

    @property
    def remaining(self) -> float:
        if self._started_at is None:
            return self.seconds
        return max(self.seconds - (time.monotonic() - self._started_at), 0.0)

    def start(self) -> asyncio.Task:
        if self._task is not None:
            return self._task
        self._started_at = time.monotonic()
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> None:
        try:
            await asyncio.sleep(self.seconds)
        except asyncio.CancelledError:
            return
        if self.cancelled:
            return
        self.expired = True
        logger.info("attempt timer expired; force-submitting %d answers", sum(a is not None for a in self._answers))
        self._on_expire(self.answers)

    def cancel(self) -> None:
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
