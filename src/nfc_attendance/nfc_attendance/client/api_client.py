from __future__ import annotations

import logging
from typing import Optional

import requests

from ..core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from .model import PendingEvent, SubmitOutcome, SubmitResult, TransientSubmitError, outcome_for_code

logger = logging.getLogger(__name__)

_ENDPOINTS = {
    "checkin": "/api/attendance/checkin",
    "checkout": "/api/attendance/checkout",
    "tap": "/api/attendance/tap",
}


class AttendanceApiClient:
    """Submits taps to the attendance service over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def submit(self, event: PendingEvent) -> SubmitResult:
        url = self._base_url + _ENDPOINTS.get(event.type, _ENDPOINTS["tap"])
        try:
            resp = self._session.post(url, json=event.to_submission(), timeout=self._timeout)
        except requests.RequestException as e:
            raise TransientSubmitError(str(e)) from e

        if resp.status_code >= 500 or resp.status_code in (408, 429):
            raise TransientSubmitError(f"HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if 200 <= resp.status_code < 300:
            outcome = SubmitOutcome.ALREADY_PROCESSED if body.get("alreadyProcessed") else SubmitOutcome.ACCEPTED
            return SubmitResult(outcome=outcome, message=body.get("message", ""))

        code = body.get("code")
        logger.debug("Tap %s answered HTTP %s %s", event.local_id, resp.status_code, code)
        return SubmitResult(outcome=outcome_for_code(code), code=code, message=body.get("message", ""))
