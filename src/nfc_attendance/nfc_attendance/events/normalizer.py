from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, List, Mapping, Optional

from ..common.datetime_utils import combine_local, format_clock, format_date, parse_iso_date, parse_timestamp, to_local_naive
from ..common.validators import clean_tag_id, optional_str, require_positive_int
from ..core.constants import LOG_KEY_SEPARATOR
from ..core.enums import EventKind, EventSource
from ..core.exceptions import ValidationError
from .model import CanonicalEvent, MirrorEntry, MirrorPayload, RawEvent, ReaderTap

_OPEN_HINTS = {"checkin", "check_in", "in", "open", "time_in"}
_CLOSE_HINTS = {"checkout", "check_out", "out", "close", "time_out"}


def make_log_key(subject: str, work_date: date, occurred_at: datetime) -> str:
    """``<tag>_<YYYY-MM-DD>_<HH:MM:SS>``: the idempotency anchor of one tap."""
    return LOG_KEY_SEPARATOR.join((subject, format_date(work_date), format_clock(occurred_at)))


def parse_kind(value: Any) -> EventKind:
    if value is None or str(value).strip() == "":
        return EventKind.TAP
    text = str(value).strip().lower()
    if text in _OPEN_HINTS:
        return EventKind.OPEN
    if text in _CLOSE_HINTS:
        return EventKind.CLOSE
    if text == EventKind.TAP.value:
        return EventKind.TAP
    raise ValidationError(f"Unknown event type {value!r}")


def parse_raw(body: Mapping[str, Any], *, source: EventSource = EventSource.READER, kind: Optional[EventKind] = None) -> RawEvent:
    """Recognize the three inbound JSON shapes.

    - ``{tagId, data: {date: {check_in, check_out}}}``: mirror, nested by date
    - ``{tagId, date, check_in, check_out}``: mirror, flattened single date
    - ``{tagId|employeeId, occurredAt, readerId, location, idempotencyKey, type}``: reader/mobile tap
    """
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")

    data = body.get("data")
    if isinstance(data, Mapping):
        entries = tuple(_mirror_entry(date_key, node) for date_key, node in data.items() if isinstance(node, Mapping))
        return MirrorPayload(tag_id=clean_tag_id(body.get("tagId") or body.get("tagUid")), entries=entries)

    if body.get("date") and body.get("check_in"):
        entry = _mirror_entry(body["date"], body)
        return MirrorPayload(tag_id=clean_tag_id(body.get("tagId") or body.get("tagUid")), entries=(entry,))

    tag_id = optional_str(body.get("tagId") or body.get("tagUid"))
    employee_id = body.get("employeeId")
    if not tag_id and employee_id in (None, ""):
        raise ValidationError("Either tagId or employeeId must be provided")

    return ReaderTap(
        tag_id=tag_id,
        occurred_at=body.get("occurredAt") or body.get("timestamp"),
        kind=kind if kind is not None else parse_kind(body.get("type") or body.get("action")),
        source=source if tag_id else EventSource.MANUAL,
        employee_id=require_positive_int(employee_id, "employeeId") if employee_id not in (None, "") else None,
        reader_id=optional_str(body.get("readerId")),
        location=optional_str(body.get("location")),
        idempotency_key=optional_str(body.get("idempotencyKey")),
    )


def _mirror_entry(date_key: Any, node: Mapping[str, Any]) -> MirrorEntry:
    return MirrorEntry(
        date=str(date_key).strip(),
        check_in=optional_str(node.get("check_in")),
        check_out=optional_str(node.get("check_out")),
    )


class EventNormalizer:
    """Converts every inbound shape into ``CanonicalEvent`` values."""

    def __init__(self, *, local_tz: Optional[tzinfo] = None):
        self._local_tz = local_tz

    def normalize(self, raw: RawEvent) -> List[CanonicalEvent]:
        if isinstance(raw, ReaderTap):
            return [self.normalize_tap(raw)]
        if isinstance(raw, MirrorPayload):
            events: List[CanonicalEvent] = []
            for entry in raw.entries:
                events.extend(self.normalize_entry(raw.tag_id, entry))
            return events
        raise ValidationError(f"Unsupported event shape: {type(raw).__name__}")

    def normalize_tap(self, tap: ReaderTap) -> CanonicalEvent:
        if isinstance(tap.occurred_at, datetime):
            occurred_at = to_local_naive(tap.occurred_at, local_tz=self._local_tz)
        else:
            occurred_at = parse_timestamp(tap.occurred_at, local_tz=self._local_tz)

        tag_id = clean_tag_id(tap.tag_id) if tap.tag_id else None
        subject = tag_id if tag_id else f"employee-{tap.employee_id}"
        return CanonicalEvent(
            tag_id=tag_id,
            occurred_at=occurred_at,
            log_key=make_log_key(subject, occurred_at.date(), occurred_at),
            kind=tap.kind,
            source=tap.source,
            employee_id=tap.employee_id,
            reader_id=tap.reader_id,
            location=tap.location,
            client_key=tap.idempotency_key,
        )

    def normalize_entry(self, tag_id: str, entry: MirrorEntry) -> List[CanonicalEvent]:
        """Expand one mirror date node into zero, one or two events.

        No ``check_in`` means nothing to anchor on, so the node is skipped.
        """
        if not entry.check_in:
            return []

        tag_id = clean_tag_id(tag_id)
        work_date = parse_iso_date(entry.date)
        time_in = combine_local(work_date, entry.check_in)
        open_key = make_log_key(tag_id, work_date, time_in)

        events = [
            CanonicalEvent(
                tag_id=tag_id,
                occurred_at=time_in,
                log_key=open_key,
                kind=EventKind.OPEN,
                source=EventSource.MIRROR,
            )
        ]
        if entry.check_out:
            time_out = combine_local(work_date, entry.check_out)
            events.append(
                CanonicalEvent(
                    tag_id=tag_id,
                    occurred_at=time_out,
                    log_key=make_log_key(tag_id, work_date, time_out),
                    kind=EventKind.CLOSE,
                    source=EventSource.MIRROR,
                    anchor_key=open_key,
                )
            )
        return events
