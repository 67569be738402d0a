"""
Session-scoped proctoring controller.

Owns one `ProctorState` at a time. Signal sources are asynchronous and
registered independently, but every event goes through `dispatch`, which
holds a lock while the reducer runs and its effects are applied, so two
transitions for the same session are never applied concurrently.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from coursegate.config import DEFAULT_CONFIG, EngineConfig
from coursegate.errors import LockedOutError, ValidationError
from coursegate.gating.types import Module
from coursegate.proctoring.countdown import AttemptCountdown
from coursegate.proctoring.events import NavigateAway, ProctorEvent, Submit, VIOLATION_KINDS
from coursegate.proctoring.lockout import format_remaining, lockout_tier, remaining_seconds, utcnow
from coursegate.proctoring.reducer import (
    Lock,
    LogViolation,
    ProctorState,
    ProctorStatus,
    Teardown,
    Transition,
    Warn,
    armed,
    reduce,
)
from coursegate.proctoring.signals import SignalBus
from coursegate.telemetry.transport import ProctorLogEvent, TelemetryTransport

if TYPE_CHECKING:
    from coursegate.progress.store import ProgressStore

logger = logging.getLogger(__name__)

_Callbacks = List[Tuple[Callable[..., Any], tuple]]


class ProctorMonitor:
    def __init__(
        self,
        *,
        student_id: str,
        course_id: str,
        progress: Optional[ProgressStore] = None,
        transport: Optional[TelemetryTransport] = None,
        bus: Optional[SignalBus] = None,
        config: EngineConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = utcnow,
        on_warning: Optional[Callable[[Warn], Any]] = None,
        on_lockout: Optional[Callable[[Lock, str], Any]] = None,
        on_abort: Optional[Callable[[str], Any]] = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.progress = progress
        self.transport = transport
        self.bus = bus or SignalBus()
        self.config = config
        self._clock = clock
        self._on_warning = on_warning
        self._on_lockout = on_lockout
        self._on_abort = on_abort
        self._lock = threading.RLock()
        self._state = ProctorState(max_warnings=config.max_warnings)
        self._countdown: Optional[AttemptCountdown] = None
        self.notices: List[str] = []
        self.history: List[Transition] = []

    @property
    def state(self) -> ProctorState:
        with self._lock:
            return self._state

    # ----- lifecycle ---------------------------------------------------
    def check_entry(self, module: Module) -> None:
        """Raise `LockedOutError` if a lockout for this module is still running."""
        if self.progress is None:
            return
        rec = self.progress.get(self.student_id, self.course_id, module.id)
        left = remaining_seconds(rec.locked_until if rec else None, self._clock())
        if left > 0:
            tier = lockout_tier(module.type, module.id)
            raise LockedOutError(rec.locked_until, left, tier.value, format_remaining(left, tier))

    def arm(self, attempt_id: str, module: Module, countdown: Optional[AttemptCountdown] = None) -> ProctorState:
        """Start proctoring a fresh attempt. The violation count starts from zero."""
        if not attempt_id:
            raise ValidationError("attempt_id is required")
        if not module.is_proctored:
            raise ValidationError(f"module {module.id} is not proctored")
        self.check_entry(module)
        with self._lock:
            if self._state.active:
                self.dispatch(NavigateAway(session_id=self._state.session_id))
            self._state = armed(attempt_id, module.id, module.type, self.config.max_warnings)
            self._countdown = countdown
            self.notices = []
        logger.info("proctoring armed session=%s module=%s type=%s", attempt_id, module.id, module.type.value)
        return self._state

    def listen(self, kind: str) -> Callable[..., bool]:
        """Emitter for one signal source, bound to the current session."""
        with self._lock:
            if not self._state.active:
                raise ValidationError("no armed proctoring session")
            return self.bus.bind(self._state.session_id, kind, self.dispatch)

    def listen_all(self) -> Dict[str, Callable[..., bool]]:
        return {kind: self.listen(kind) for kind in VIOLATION_KINDS}

    def submit(self) -> ProctorState:
        return self.dispatch(Submit(session_id=self.state.session_id))

    def navigate_away(self) -> ProctorState:
        return self.dispatch(NavigateAway(session_id=self.state.session_id))

    # ----- reducer -----------------------------------------------------
    def dispatch(self, event: ProctorEvent) -> ProctorState:
        """
        Run one event through the reducer and apply its effects.

        Persistence and teardown complete before any UI callback runs, and a
        failing callback is logged without undoing the transition.
        """
        callbacks: _Callbacks = []
        with self._lock:
            transition = reduce(self._state, event, self._clock())
            if transition.state is self._state:
                return self._state
            self._state = transition.state
            self.history.append(transition)
            for effect in transition.effects:
                self._apply(effect, callbacks)
            if self._state.status == ProctorStatus.SUBMITTED:
                self._state = replace(self._state, status=ProctorStatus.INACTIVE)
            state = self._state
        for fn, args in callbacks:
            try:
                fn(*args)
            except Exception:
                logger.warning("proctoring callback %s failed session=%s", getattr(fn, "__name__", fn), state.session_id, exc_info=True)
        return state

    def _apply(self, effect: object, callbacks: _Callbacks) -> None:
        state = self._state
        if isinstance(effect, LogViolation):
            self._ship(effect.event.kind, {**effect.event.details, "count": effect.count})
        elif isinstance(effect, Warn):
            self.notices.append(effect.message)
            logger.info("proctoring warning session=%s count=%d remaining=%d", state.session_id, effect.count, effect.remaining)
            if self._on_warning is not None:
                callbacks.append((self._on_warning, (effect,)))
        elif isinstance(effect, Lock):
            self._lock_out(state, effect, callbacks)
        elif isinstance(effect, Teardown):
            self._teardown(state, effect.reason)

    def _lock_out(self, state: ProctorState, effect: Lock, callbacks: _Callbacks) -> None:
        logger.warning(
            "proctoring lockout session=%s module=%s until=%s tier=%s",
            state.session_id, state.module_id, effect.until.isoformat(), effect.tier.value,
        )
        if self.progress is not None:
            self.progress.set_lockout(self.student_id, self.course_id, state.module_id, effect.until)
        self._ship("lockout", {"lockedUntil": effect.until.isoformat(), "tier": effect.tier.value})
        left = remaining_seconds(effect.until, self._clock())
        self.notices.append(format_remaining(left, effect.tier))
        if self._on_abort is not None:
            callbacks.append((self._on_abort, (state.session_id,)))
        if self._on_lockout is not None:
            callbacks.append((self._on_lockout, (effect, state.session_id)))

    def _teardown(self, state: ProctorState, reason: str) -> None:
        self.bus.detach(state.session_id)
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        logger.info("proctoring session ended session=%s reason=%s violations=%d", state.session_id, reason, state.violation_count)

    def _ship(self, event_type: str, details: Dict[str, Any]) -> None:
        if self.transport is None:
            return
        self.transport.emit(
            ProctorLogEvent(
                student_id=self.student_id,
                course_id=self.course_id,
                attempt_id=self._state.session_id,
                event_type=event_type,
                details=details,
                timestamp=self._clock(),
            )
        )
