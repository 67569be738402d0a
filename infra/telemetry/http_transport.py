from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Dict, Optional, Tuple

import httpx

from coursegate.telemetry.transport import TelemetryTransport

logger = logging.getLogger(__name__)


class HttpTelemetryTransport(TelemetryTransport):
    """
    httpx-backed TelemetryTransport.

    - Primary channel: a daemon worker draining an in-process queue. `send`
      only enqueues, so the caller never waits on the network.
    - Fallback channel: when the queue is closed or full, one POST is fired
      from a short-lived thread. It is not retried. After `close()` an owned
      client is gone, so the fallback opens its own one-shot client.
    - Error statuses and network failures are logged and dropped.
    """

    poll_interval = 0.1

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 5.0,
        max_queue: int = 1000,
        client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout
        self._transport = transport
        self._owns_client = client is None
        self._client = client or self._new_client()
        self._queue: "queue.Queue[Tuple[str, Dict[str, Any]]]" = queue.Queue(maxsize=max_queue)
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._worker = threading.Thread(target=self._drain, name="telemetry-sender", daemon=True)
        self._worker.start()
        self.delivered = 0
        self.dropped = 0

    def _new_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def send(self, path: str, payload: Dict[str, Any]) -> bool:
        # the closed check and the enqueue happen under one lock so nothing
        # lands in the queue once the worker may have exited
        with self._lock:
            if not self._closed.is_set():
                try:
                    self._queue.put_nowait((path, payload))
                    return True
                except queue.Full:
                    logger.debug("telemetry queue full, using fallback path=%s", path)
        return self._fallback(path, payload)

    def _fallback(self, path: str, payload: Dict[str, Any]) -> bool:
        try:
            threading.Thread(target=self._post_once, args=(path, payload), name="telemetry-fallback", daemon=True).start()
            return True
        except RuntimeError as e:
            # interpreter shutting down
            logger.warning("telemetry fallback unavailable path=%s: %s", path, e)
            self.dropped += 1
            return False

    def _post_once(self, path: str, payload: Dict[str, Any]) -> bool:
        if not self._owns_client:
            return self._post(self._client, path, payload)
        with self._new_client() as client:
            return self._post(client, path, payload)

    def _post(self, client: httpx.Client, path: str, payload: Dict[str, Any]) -> bool:
        try:
            r = client.post(path, json=payload)
        except (httpx.HTTPError, RuntimeError) as e:
            logger.warning("telemetry delivery failed path=%s: %s", path, e)
            self.dropped += 1
            return False
        if r.status_code >= 400:
            logger.warning("telemetry rejected path=%s status=%s", path, r.status_code)
            self.dropped += 1
            return False
        self.delivered += 1
        return True

    def _drain(self) -> None:
        # exits only once closed and empty, so close() delivers what was queued
        while True:
            try:
                path, payload = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._closed.is_set():
                    return
                continue
            try:
                self._post(self._client, path, payload)
            except Exception:
                logger.exception("telemetry worker error")
            finally:
                self._queue.task_done()

    def flush(self, timeout: Optional[float] = None) -> None:
        if timeout is None:
            self._queue.join()
            return
        # Queue.join takes no timeout.
        done = threading.Event()

        def _join() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_join, daemon=True).start()
        if not done.wait(timeout):
            logger.warning("telemetry flush timed out pending=%d", self._queue.qsize())

    def close(self) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._worker.join()
        if self._owns_client:
            self._client.close()
