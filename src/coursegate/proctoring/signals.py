"""
Listener registry for proctoring signal sources, keyed by session id.

Each source (visibility watcher, focus watcher, fullscreen watcher, face
detector) gets an emitter bound to one session. Detaching the session makes
every emitter it handed out inert, so a late callback cannot touch a session
that has already ended.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from coursegate.proctoring.events import ProctorEvent, violation_for

logger = logging.getLogger(__name__)

Handler = Callable[[ProctorEvent], Any]


class SignalBus:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bindings: Dict[str, Dict[str, Handler]] = {}

    def bind(self, session_id: str, kind: str, handler: Handler) -> Callable[..., bool]:
        """Register `kind` for the session and return its emitter. Emitters return False once detached."""
        violation_for(kind, session_id)  # reject unknown kinds up front
        with self._lock:
            self._bindings.setdefault(session_id, {})[kind] = handler

        def emit(details: Optional[Dict[str, Any]] = None) -> bool:
            with self._lock:
                target = self._bindings.get(session_id, {}).get(kind)
            if target is None:
                logger.debug("dropping %s for detached session %s", kind, session_id)
                return False
            target(violation_for(kind, session_id, details))
            return True

        return emit

    def detach(self, session_id: str) -> int:
        with self._lock:
            removed = self._bindings.pop(session_id, {})
        if removed:
            logger.debug("detached %d listeners from session %s", len(removed), session_id)
        return len(removed)

    def bound(self, session_id: str) -> List[str]:
        with self._lock:
            return sorted(self._bindings.get(session_id, {}))
