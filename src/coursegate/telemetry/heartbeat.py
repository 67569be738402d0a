"""
Periodic engagement heartbeat for the module a learner is viewing.

Time on module and the deepest scroll position are shipped every 30 seconds
and once more when tracking stops, independently of the UI flow.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from coursegate.config import DEFAULT_CONFIG
from coursegate.telemetry.transport import HeartbeatEvent, TelemetryTransport

logger = logging.getLogger(__name__)


def scroll_percent(scroll_top: float, scroll_height: float, viewport_height: float) -> float:
    track = scroll_height - viewport_height
    if track <= 0:
        return 100.0
    return min(100.0, max(0.0, scroll_top / track * 100))


class EngagementTracker:
    def __init__(
        self,
        transport: TelemetryTransport,
        *,
        student_id: str,
        course_id: str,
        module_id: str,
        interval: float = DEFAULT_CONFIG.heartbeat_seconds,
        clock: Callable[[], float] = time.monotonic,
        on_tick: Optional[Callable[[], Any]] = None,
    ):
        self.transport = transport
        self.student_id = student_id
        self.course_id = course_id
        self.module_id = module_id
        self.interval = interval
        self._clock = clock
        self._on_tick = on_tick
        self._window_start = clock()
        self._max_scroll = 0.0
        self._task: Optional[asyncio.Task] = None
        self.sent = 0

    def record_scroll(self, percent: float) -> None:
        self._max_scroll = max(self._max_scroll, min(100.0, max(0.0, float(percent))))

    def snapshot(self) -> HeartbeatEvent:
        """Build the heartbeat for the current window and start a new window."""
        now = self._clock()
        event = HeartbeatEvent(
            student_id=self.student_id,
            course_id=self.course_id,
            module_id=self.module_id,
            time_spent=max(now - self._window_start, 0.0),
            scroll_depth=int(round(self._max_scroll)),
        )
        self._window_start = now
        return event

    def sync(self) -> bool:
        delivered = self.transport.emit(self.snapshot())
        self.sent += 1
        if self._on_tick is not None:
            try:
                self._on_tick()
            except Exception:
                logger.warning("heartbeat tick hook failed module=%s", self.module_id, exc_info=True)
        return delivered

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.sync()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._window_start = self._clock()
            self._max_scroll = 0.0
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the loop and send the final heartbeat for the module."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.sync()
