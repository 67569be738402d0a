from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from coursegate.errors import NotFoundError, TransientNetworkError, ValidationError
from coursegate.gating.types import StoreOrigin
from coursegate.progress.repository import ProgressRepository
from coursegate.progress.types import ProgressRecord

logger = logging.getLogger(__name__)


class HttpProgressRepository(ProgressRepository):
    """
    Document store reached through the progress API.

    Accepts any module id. The student is identified by the bearer token, so
    `student_id` on the record is only used to label the rows read back.
    """

    origin = StoreOrigin.DOCUMENT

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), headers=headers, timeout=timeout)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            r = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransientNetworkError(f"{method} {path} failed: {e}") from e
        if r.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found")
        if r.status_code in (400, 422):
            raise ValidationError(f"{method} {path}: {r.text}")
        if r.status_code >= 400:
            raise TransientNetworkError(f"{method} {path}: status {r.status_code}")
        return r

    def upsert(self, record: ProgressRecord) -> ProgressRecord:
        r = self._request("PUT", f"/progress/{record.course_id}/{record.module_id}", json=record.to_payload())
        data = r.json() if r.content else {}
        return ProgressRecord.from_payload(record.student_id, record.course_id, record.module_id, data or record.to_payload())

    def fetch_course(self, student_id: str, course_id: str) -> Dict[str, ProgressRecord]:
        r = self._request("GET", f"/progress/{course_id}")
        body = r.json() or {}
        return {
            module_id: ProgressRecord.from_payload(student_id, course_id, module_id, data)
            for module_id, data in body.items()
            if isinstance(data, dict)
        }

    def rebalance(self, student_id: str, course_id: str) -> List[str]:
        """Ask the backend to recompute the learning path. Usable as a `ProgressStore` rebalance hook."""
        r = self._request("POST", f"/learning-path/{course_id}/rebalance")
        recommended = (r.json() or {}).get("recommended") or []
        logger.info("learning path rebalanced student_id=%s course_id=%s next=%s", student_id, course_id, recommended)
        return list(recommended)

    def close(self) -> None:
        self._client.close()
