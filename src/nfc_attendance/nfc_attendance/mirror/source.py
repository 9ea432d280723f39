from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import requests

from ..core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS


class MirrorSource(Protocol):
    def fetch_snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError


class RestMirrorSource(MirrorSource):
    """Reads the realtime mirror through its REST endpoint (``<url>/<path>.json``)."""

    def __init__(
        self,
        base_url: str,
        *,
        path: str = "attendance",
        auth: Optional[str] = None,
        timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._url = f"{base_url.rstrip('/')}/{path.strip('/')}.json"
        self._auth = auth
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch_snapshot(self) -> Dict[str, Any]:
        params = {"auth": self._auth} if self._auth else None
        resp = self._session.get(self._url, params=params, timeout=self._timeout)
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, dict) else {}
