# -*- coding: utf-8 -*-
"""
sluicewatch/fetcher.py
Remote reads against the occurrence API.
- fetch_occurrences(): GET, envelope {success, data: [...]} -> Dataset
- every failure is classified as NetworkError / HttpError / ShapeError
- no retries and no caching here; the reconciler owns both
resolve_occurrence() and check_health() are opaque boolean calls.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from sluicewatch.errors import HttpError, NetworkError, ShapeError
from sluicewatch.models import Dataset, occurrence_from_wire

DEFAULT_BASE_URL = "http://localhost:8080/api/v1"


class OccurrenceFetcher:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        occurrences_path: str = "/ocorrencias/historico",
        resolve_path: str = "/ocorrencias/{id}/resolver",
        params: Optional[Dict[str, Any]] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.occurrences_path = occurrences_path
        self.resolve_path = resolve_path
        self.params = dict(params or {})
        self.timeout = timeout
        self._client = client

    def _client_get(self) -> httpx.AsyncClient:
        # one client per fetcher, reused across polls
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": "sluicewatch/1.0", "Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send one request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        try:
            resp = await self._client_get().request(method, url, **kwargs)
        except httpx.DecodingError as e:
            # body arrived but its content-encoding is broken
            raise ShapeError(f"{method} {url}: body could not be decoded: {e!r}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{method} {url} failed: {e!r}") from e
        if not resp.is_success:
            raise HttpError(resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ShapeError(f"{method} {url}: body is not JSON") from e

    async def fetch_occurrences(self) -> Dataset:
        body = await self._request("GET", self.occurrences_path, params=self.params or None)
        if not isinstance(body, dict):
            raise ShapeError(f"envelope is {type(body).__name__}, expected object")
        if body.get("success") is not True:
            raise ShapeError(f"envelope reports failure: {body.get('message') or 'success=false'}")
        data = body.get("data")
        if not isinstance(data, list):
            raise ShapeError(f"envelope data is {type(data).__name__}, expected list")
        try:
            return tuple(occurrence_from_wire(item) for item in data)
        except (KeyError, TypeError, ValueError) as e:
            raise ShapeError(f"bad occurrence record: {e!r}") from e

    async def _boolean_call(self, method: str, path: str) -> bool:
        try:
            body = await self._request(method, path)
        except (NetworkError, HttpError, ShapeError) as e:
            print(f"[fetcher] {method} {path} failed: {e}")
            return False
        return isinstance(body, dict) and body.get("success") is True

    async def resolve_occurrence(self, occurrence_id: int) -> bool:
        """Ask the server to mark one occurrence resolved."""
        return await self._boolean_call("POST", self.resolve_path.format(id=int(occurrence_id)))

    async def check_health(self) -> bool:
        return await self._boolean_call("GET", "/health")
