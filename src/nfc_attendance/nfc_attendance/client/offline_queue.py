from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..core.constants import DEFAULT_OFFLINE_BUFFER_MAX
from ..core.exceptions import DomainError
from .model import PENDING_TYPES, PendingEvent, ReplayReport, SubmitOutcome, SubmitResult, TransientSubmitError, outcome_for_code

logger = logging.getLogger(__name__)

Submit = Callable[[PendingEvent], SubmitResult]


class QueueStorage(Protocol):
    def load(self) -> Dict[str, List[dict]]:
        raise NotImplementedError

    def save(self, state: Dict[str, List[dict]]) -> None:
        raise NotImplementedError


class InMemoryQueueStorage(QueueStorage):
    def __init__(self):
        self._state: Dict[str, List[dict]] = {"pending": [], "deadLetters": []}

    def load(self) -> Dict[str, List[dict]]:
        return {k: list(v) for k, v in self._state.items()}

    def save(self, state: Dict[str, List[dict]]) -> None:
        self._state = {k: list(v) for k, v in state.items()}


class JsonFileQueueStorage(QueueStorage):
    """Queue persisted as one JSON document, replaced atomically on save."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def load(self) -> Dict[str, List[dict]]:
        if not self._path.exists():
            return {"pending": [], "deadLetters": []}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Offline buffer %s is unreadable; starting empty", self._path)
            return {"pending": [], "deadLetters": []}

        # Older buffers were a bare list of events.
        if isinstance(data, list):
            return {"pending": data, "deadLetters": []}
        return {"pending": list(data.get("pending") or []), "deadLetters": list(data.get("deadLetters") or [])}

    def save(self, state: Dict[str, List[dict]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(state, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)


def _capture_order(event: PendingEvent) -> datetime:
    try:
        return event.occurred_at
    except ValueError:
        # Unparseable entries from an older buffer go first; the server rejects them.
        return datetime.min


class OfflineQueue:
    """Buffers taps while the service is unreachable and replays them later.

    An entry leaves the queue only when the server acknowledges it (accepted
    or already processed). Permanent rejections such as an unknown tag move
    to the dead-letter list so they are neither retried nor lost. Anything
    else keeps the entry for the next attempt.
    """

    def __init__(self, storage: Optional[QueueStorage] = None, *, max_size: int = DEFAULT_OFFLINE_BUFFER_MAX):
        self._storage = storage or InMemoryQueueStorage()
        self._max_size = int(max_size)
        self._lock = threading.Lock()
        state = self._storage.load()
        self._pending = [PendingEvent.from_dict(d) for d in state.get("pending", [])]
        self._dead_letters: List[dict] = list(state.get("deadLetters", []))

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending(self) -> List[PendingEvent]:
        with self._lock:
            return list(self._pending)

    def dead_letters(self) -> List[dict]:
        with self._lock:
            return list(self._dead_letters)

    def enqueue(
        self,
        *,
        tag_id: str,
        timestamp: str,
        type: str = "tap",
        reader_id: Optional[str] = None,
        location: Optional[str] = None,
    ) -> PendingEvent:
        if type not in PENDING_TYPES:
            raise ValueError(f"Unknown pending event type {type!r}")
        event = PendingEvent(
            local_id=uuid.uuid4().hex,
            type=type,
            tag_id=tag_id,
            timestamp=timestamp,
            reader_id=reader_id,
            location=location,
        )
        event.occurred_at  # raises ValueError on a malformed timestamp
        with self._lock:
            self._pending.append(event)
            while len(self._pending) > self._max_size:
                dropped = self._pending.pop(0)
                logger.warning("Offline buffer full (%s); dropped oldest tap %s", self._max_size, dropped.local_id)
            self._persist()
        logger.info("Buffered tap %s for %s at %s", event.local_id, tag_id, timestamp)
        return event

    def drain_and_replay(self, submit: Submit) -> ReplayReport:
        """Replay every queued tap through ``submit`` in capture-time order.

        A network-class failure stops the pass; the untried entries stay queued.
        """
        report = ReplayReport()
        with self._lock:
            batch = sorted(self._pending, key=_capture_order)

        done: Dict[str, Optional[dict]] = {}
        for event in batch:
            try:
                result = submit(event)
            except TransientSubmitError as e:
                logger.info("Replay interrupted, still offline: %s", e)
                report.interrupted = True
                break

            if result.outcome == SubmitOutcome.ACCEPTED:
                report.accepted.append(event.local_id)
                done[event.local_id] = None
            elif result.outcome == SubmitOutcome.ALREADY_PROCESSED:
                report.already_processed.append(event.local_id)
                done[event.local_id] = None
            elif result.outcome == SubmitOutcome.REJECTED:
                logger.warning("Tap %s rejected permanently: %s %s", event.local_id, result.code, result.message)
                report.rejected.append(event.local_id)
                done[event.local_id] = {**event.to_dict(), "code": result.code, "message": result.message}
            else:
                logger.info("Tap %s will be retried: %s", event.local_id, result.code)

        with self._lock:
            self._pending = [e for e in self._pending if e.local_id not in done]
            self._dead_letters.extend(d for d in done.values() if d is not None)
            if done:
                self._persist()
            report.remaining = len(self._pending)
        return report

    def _persist(self) -> None:
        self._storage.save(
            {
                "pending": [e.to_dict() for e in self._pending],
                "deadLetters": list(self._dead_letters),
            }
        )


def service_submitter(attendance_service: Any) -> Submit:
    """Submit queued taps in-process through ``AttendanceService.submit_tap``."""

    def submit(event: PendingEvent) -> SubmitResult:
        try:
            result = attendance_service.submit_tap(event.to_submission())
        except DomainError as e:
            return SubmitResult(outcome=outcome_for_code(e.code), code=e.code, message=str(e))
        outcome = SubmitOutcome.ALREADY_PROCESSED if result.already_processed else SubmitOutcome.ACCEPTED
        return SubmitResult(outcome=outcome, message=result.message)

    return submit
