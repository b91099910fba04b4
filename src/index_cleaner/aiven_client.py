"""Aiven REST client for listing and deleting OpenSearch indexes."""

from __future__ import annotations

import time
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from .config import DEFAULT_API_URL
from .exceptions import DeleteError, ListError
from .logger import get_logger
from .models import IndexRef

log = get_logger(__name__)


class AivenClient:
    """Blocking client for the Aiven v1 OpenSearch index endpoints."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not token:
            log.warning("Aiven API token not set (AIVEN_API_TOKEN); requests will be rejected")
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.client = httpx.Client(
            timeout=timeout,
            headers={"Authorization": f"aivenv1 {token}", "Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "AivenClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _index_url(self, project: str, service: str, index_name: Optional[str] = None) -> str:
        url = f"{self.base_url}/v1/project/{quote(project, safe='')}/service/{quote(service, safe='')}/index"
        if index_name is not None:
            url += f"/{quote(index_name, safe='')}"
        return url

    def list_indexes(self, project: str, service: str) -> List[IndexRef]:
        """
        Return every index of the service. Rate limits and 5xx responses are
        retried with exponential backoff; anything else raises ListError.
        """
        url = self._index_url(project, service)
        backoff = self.backoff
        data: Any = {}
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = self.client.get(url)
            except httpx.HTTPError as e:
                log.error("Aiven list error (attempt %d/%d): %s", attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    time.sleep(backoff)
                    backoff *= 2
                    continue
                raise ListError(service, str(e)) from e
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                log.warning(
                    "Aiven API returned %d while listing %s. Attempt %d/%d.",
                    resp.status_code,
                    service,
                    attempt,
                    self.max_attempts,
                )
                if attempt < self.max_attempts:
                    time.sleep(backoff)
                    backoff *= 2
                    continue
            if resp.status_code >= 400:
                raise ListError(service, f"HTTP {resp.status_code}: {resp.text}")
            try:
                data = resp.json()
            except ValueError as e:
                raise ListError(service, f"invalid JSON: {e}") from e
            break

        raw_indexes = (data.get("indexes") or []) if isinstance(data, dict) else None
        if not isinstance(raw_indexes, list):
            raise ListError(service, "unexpected response shape")

        indexes: List[IndexRef] = []
        for item in raw_indexes:
            try:
                indexes.append(IndexRef(name=str(item["index_name"]), size_bytes=int(item.get("size") or 0)))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise ListError(service, f"malformed index entry {item!r}") from e
        log.info("Found %d indexes in %s", len(indexes), service)
        return indexes

    def delete_index(self, project: str, service: str, index_name: str) -> None:
        """Delete one index. Not retried; failures raise DeleteError."""
        try:
            resp = self.client.delete(self._index_url(project, service, index_name))
        except httpx.HTTPError as e:
            raise DeleteError(index_name, str(e)) from e
        if resp.status_code >= 400:
            raise DeleteError(index_name, f"HTTP {resp.status_code}: {resp.text}")
