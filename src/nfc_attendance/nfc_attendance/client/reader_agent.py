"""Reader agent for keyboard-wedge/USB NFC readers.

Reads one tag UID per line from stdin, submits it to the attendance service
and buffers it in the offline queue when the service cannot be reached. A
background thread retries the buffer on a fixed interval.
"""
from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime
from typing import Callable, Optional

from dotenv import load_dotenv

from ..core.constants import DEFAULT_READER_TAP_TYPE, DEFAULT_RETRY_INTERVAL_SECONDS
from .api_client import AttendanceApiClient
from .model import ReplayReport, SubmitOutcome, SubmitResult
from .offline_queue import JsonFileQueueStorage, OfflineQueue

logger = logging.getLogger(__name__)


class ReaderAgent:
    def __init__(
        self,
        client: AttendanceApiClient,
        queue: OfflineQueue,
        *,
        reader_id: str,
        location: Optional[str] = None,
        tap_type: str = DEFAULT_READER_TAP_TYPE,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ):
        self._client = client
        self._queue = queue
        self._reader_id = reader_id
        self._location = location
        self._tap_type = tap_type
        self._clock = clock
        self.scan_count = 0
        self.error_count = 0
        self.is_online = True
        self.last_scan_at: Optional[str] = None

    def handle_tap(self, tag_id: str) -> Optional[SubmitResult]:
        """Submit a tap now; buffer it if the service is unreachable. None means buffered."""
        timestamp = self._clock().replace(microsecond=0).isoformat()
        self.scan_count += 1
        self.last_scan_at = timestamp

        event = self._queue.enqueue(
            tag_id=tag_id,
            timestamp=timestamp,
            type=self._tap_type,
            reader_id=self._reader_id,
            location=self._location,
        )
        # Submitted straight from the queue so a crash mid-request cannot lose the tap.
        report = self._queue.drain_and_replay(self._submit_only(event.local_id))
        if report.interrupted:
            self.is_online = False
            self.error_count += 1
            return None
        self.is_online = True
        if event.local_id in report.accepted:
            return SubmitResult(outcome=SubmitOutcome.ACCEPTED)
        if event.local_id in report.already_processed:
            return SubmitResult(outcome=SubmitOutcome.ALREADY_PROCESSED)
        if event.local_id in report.rejected:
            self.error_count += 1
            return SubmitResult(outcome=SubmitOutcome.REJECTED)
        return None

    def _submit_only(self, local_id: str):
        def submit(event):
            if event.local_id != local_id:
                return SubmitResult(outcome=SubmitOutcome.RETRY)
            return self._client.submit(event)

        return submit

    def reconnect_check(self) -> ReplayReport:
        if not len(self._queue):
            return ReplayReport()
        report = self._queue.drain_and_replay(self._client.submit)
        self.is_online = not report.interrupted
        if report.acknowledged or report.rejected:
            logger.info(
                "Synced %s buffered taps (%s rejected), %s remaining",
                report.acknowledged,
                len(report.rejected),
                report.remaining,
            )
        return report

    def run_reconnect_loop(self, stop: threading.Event, interval: float = DEFAULT_RETRY_INTERVAL_SECONDS) -> None:
        while not stop.wait(interval):
            try:
                self.reconnect_check()
            except Exception:
                logger.exception("Reconnect check failed")

    def health(self) -> dict:
        return {
            "status": "online" if self.is_online else "offline",
            "readerId": self._reader_id,
            "location": self._location,
            "lastScan": self.last_scan_at,
            "totalScans": self.scan_count,
            "errorCount": self.error_count,
            "bufferedEvents": len(self._queue),
        }


def main() -> None:
    load_dotenv(override=False)
    from config import load_settings

    settings = load_settings()
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    queue = OfflineQueue(
        JsonFileQueueStorage(settings.OFFLINE_BUFFER_FILE),
        max_size=settings.OFFLINE_BUFFER_MAX,
    )
    client = AttendanceApiClient(settings.API_BASE_URL, token=settings.API_TOKEN or None)
    agent = ReaderAgent(
        client,
        queue,
        reader_id=settings.READER_ID,
        location=settings.READER_LOCATION,
        tap_type=settings.READER_TAP_TYPE,
    )

    stop = threading.Event()
    retry = threading.Thread(
        target=agent.run_reconnect_loop,
        args=(stop, settings.RETRY_INTERVAL_SECONDS),
        daemon=True,
    )
    retry.start()
    logger.info("Reader %s at %s ready, %s buffered taps", settings.READER_ID, settings.READER_LOCATION, len(queue))

    try:
        for line in sys.stdin:
            tag_id = line.strip()
            if tag_id:
                agent.handle_tap(tag_id)
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        logger.info("Reader stopped: %s", agent.health())


if __name__ == "__main__":
    main()
