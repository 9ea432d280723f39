from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from src.nfc_attendance.nfc_attendance.core.enums import EventKind, EventSource
from src.nfc_attendance.nfc_attendance.core.exceptions import InvalidTimestamp, ValidationError
from src.nfc_attendance.nfc_attendance.events.model import MirrorPayload, ReaderTap
from src.nfc_attendance.nfc_attendance.events.normalizer import EventNormalizer, parse_kind, parse_raw


@pytest.fixture
def normalizer():
    return EventNormalizer(local_tz=ZoneInfo("UTC"))


def test_nested_mirror_payload(normalizer):
    raw = parse_raw(
        {
            "tagId": "NFC-1",
            "data": {
                "2026-03-02": {"check_in": "08:02:00", "check_out": "17:31:45"},
                "2026-03-03": {"check_in": "08:00:00"},
            },
        },
        source=EventSource.MIRROR,
    )

    assert isinstance(raw, MirrorPayload)
    events = normalizer.normalize(raw)
    assert [(e.kind, e.log_key) for e in events] == [
        (EventKind.OPEN, "NFC-1_2026-03-02_08:02:00"),
        (EventKind.CLOSE, "NFC-1_2026-03-02_17:31:45"),
        (EventKind.OPEN, "NFC-1_2026-03-03_08:00:00"),
    ]
    assert events[1].anchor_key == "NFC-1_2026-03-02_08:02:00"
    assert all(e.source == EventSource.MIRROR for e in events)


def test_flattened_mirror_payload(normalizer):
    raw = parse_raw({"tagId": "NFC-1", "date": "2026-03-02", "check_in": "08:02:00", "check_out": None})

    events = normalizer.normalize(raw)

    assert len(events) == 1
    assert events[0].occurred_at == datetime(2026, 3, 2, 8, 2, 0)


def test_mirror_entry_without_check_in_is_skipped(normalizer):
    raw = parse_raw({"tagId": "NFC-1", "data": {"2026-03-02": {"check_out": "17:00:00"}}})

    assert normalizer.normalize(raw) == []


def test_reader_tap_shape(normalizer):
    raw = parse_raw(
        {
            "tagId": "nfc-1",
            "occurredAt": "2026-03-02T08:02:00Z",
            "readerId": "R1",
            "location": "Lobby",
            "idempotencyKey": "client-123",
            "type": "checkin",
        }
    )

    assert isinstance(raw, ReaderTap)
    event = normalizer.normalize_tap(raw)
    assert event.kind == EventKind.OPEN
    assert event.tag_id == "NFC-1"
    assert event.log_key == "NFC-1_2026-03-02_08:02:00"
    assert event.client_key == "client-123"
    assert event.reader_id == "R1"


def test_reader_and_mirror_paths_share_log_key(normalizer):
    tap = normalizer.normalize_tap(parse_raw({"tagId": "04:a3:32:bc", "occurredAt": "2026-03-02T08:02:00"}))
    mirrored = normalizer.normalize(
        parse_raw({"tagId": "04A332BC", "date": "2026-03-02", "check_in": "08:02:00"})
    )[0]

    assert tap.log_key == mirrored.log_key == "04A332BC_2026-03-02_08:02:00"


def test_log_key_uses_local_date(normalizer):
    local = EventNormalizer(local_tz=ZoneInfo("Asia/Ho_Chi_Minh"))

    event = local.normalize_tap(parse_raw({"tagId": "NFC-1", "occurredAt": "2026-03-01T20:30:00+00:00"}))

    assert event.work_date.isoformat() == "2026-03-02"
    assert event.log_key == "NFC-1_2026-03-02_03:30:00"


def test_missing_identity_is_rejected():
    with pytest.raises(ValidationError):
        parse_raw({"occurredAt": "2026-03-02T08:00:00"})


def test_bad_timestamp_is_rejected(normalizer):
    with pytest.raises(InvalidTimestamp):
        normalizer.normalize_tap(parse_raw({"tagId": "NFC-1", "occurredAt": "yesterday"}))
    with pytest.raises(InvalidTimestamp):
        normalizer.normalize(parse_raw({"tagId": "NFC-1", "date": "02/03/2026", "check_in": "08:00:00"}))


@pytest.mark.parametrize(
    "value, kind",
    [(None, EventKind.TAP), ("checkin", EventKind.OPEN), ("OUT", EventKind.CLOSE), ("tap", EventKind.TAP)],
)
def test_parse_kind(value, kind):
    assert parse_kind(value) == kind


def test_parse_kind_unknown():
    with pytest.raises(ValidationError):
        parse_kind("lunch")
