from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from ..core.enums import EventSource
from ..core.exceptions import DomainError, ValidationError
from ..attendance.engine import ReconciliationEngine
from ..events.model import MirrorEntry, MirrorPayload
from ..events.normalizer import EventNormalizer, parse_raw
from .source import MirrorSource

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 10


@dataclass
class MirrorSyncReport:
    """Per-event tally of one sync run: opens created, closes applied, no-ops."""

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def merge(self, other: "MirrorSyncReport") -> None:
        self.processed += other.processed
        self.created += other.created
        self.updated += other.updated
        self.skipped += other.skipped
        self.errors.extend(other.errors)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors[:MAX_REPORTED_ERRORS],
        }


class MirrorSyncAdapter:
    """Feeds mirror notifications through the same normalizer and engine as live taps.

    There is no adapter-level deduplication: redelivering a payload is safe
    because the engine recognizes every tap by its log key.
    """

    def __init__(self, normalizer: EventNormalizer, engine: ReconciliationEngine):
        self._normalizer = normalizer
        self._engine = engine

    def on_event(self, tag_id: str, payload: Mapping[str, Any]) -> MirrorSyncReport:
        """Handle an "added" or "changed" notification for one tag's date-keyed node."""
        report = MirrorSyncReport()
        if not isinstance(payload, Mapping):
            return report
        for date_key, node in payload.items():
            if not isinstance(node, Mapping):
                continue
            entry = MirrorEntry(date=str(date_key), check_in=node.get("check_in"), check_out=node.get("check_out"))
            self._process_entry(tag_id, entry, report)
        return report

    on_added = on_event
    on_changed = on_event

    def handle_payload(self, body: Mapping[str, Any]) -> MirrorSyncReport:
        """Webhook body: nested ``{tagId, data}`` or flattened ``{tagId, date, check_in, check_out}``."""
        raw = parse_raw(body, source=EventSource.MIRROR)
        if not isinstance(raw, MirrorPayload):
            raise ValidationError("Mirror payload must carry data or date/check_in")
        report = MirrorSyncReport()
        for entry in raw.entries:
            self._process_entry(raw.tag_id, entry, report)
        return report

    def sync_snapshot(self, snapshot: Mapping[str, Any]) -> MirrorSyncReport:
        """Reconcile a full ``{tagId: {date: {check_in, check_out}}}`` snapshot."""
        report = MirrorSyncReport()
        for tag_id, payload in (snapshot or {}).items():
            report.merge(self.on_event(tag_id, payload))
        return report

    def poll(self, source: MirrorSource) -> MirrorSyncReport:
        snapshot = source.fetch_snapshot()
        report = self.sync_snapshot(snapshot)
        logger.info(
            "Mirror poll complete: tags=%s created=%s updated=%s skipped=%s errors=%s",
            len(snapshot),
            report.created,
            report.updated,
            report.skipped,
            len(report.errors),
        )
        return report

    def _process_entry(self, tag_id: str, entry: MirrorEntry, report: MirrorSyncReport) -> None:
        # Rejections stay scoped to their own entry; store failures propagate so
        # the mirror redelivers.
        try:
            events = self._normalizer.normalize_entry(tag_id, entry)
            if not events:
                return
            report.processed += 1
            for event in events:
                result = self._engine.submit(event)
                if result.already_processed:
                    report.skipped += 1
                elif event.anchor_key:
                    report.updated += 1
                else:
                    report.created += 1
        except DomainError as e:
            logger.warning("Mirror entry %s/%s rejected: %s", tag_id, entry.date, e)
            report.errors.append(f"{tag_id}_{entry.date}: {e.code}: {e}")
