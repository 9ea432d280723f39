from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple, Union

from ..core.enums import EventKind, EventSource


@dataclass(frozen=True)
class ReaderTap:
    """Raw tap from an on-site reader, the mobile app, or an offline replay."""

    tag_id: Optional[str]
    occurred_at: Union[str, datetime]
    kind: EventKind = EventKind.TAP
    source: EventSource = EventSource.READER
    employee_id: Optional[int] = None
    reader_id: Optional[str] = None
    location: Optional[str] = None
    idempotency_key: Optional[str] = None


@dataclass(frozen=True)
class MirrorEntry:
    """One date node of a mirror payload; times are local clock strings."""

    date: str
    check_in: Optional[str]
    check_out: Optional[str] = None


@dataclass(frozen=True)
class MirrorPayload:
    tag_id: str
    entries: Tuple[MirrorEntry, ...] = field(default_factory=tuple)


RawEvent = Union[ReaderTap, MirrorPayload]


@dataclass(frozen=True)
class CanonicalEvent:
    """The single event shape the reconciliation engine consumes.

    ``log_key`` identifies this physical tap and is reproducible from the tag,
    the local date and the local clock time, whichever path delivered it.
    ``anchor_key`` is set on mirror close events and names the open tap the
    close pairs with.
    """

    tag_id: Optional[str]
    occurred_at: datetime
    log_key: str
    kind: EventKind
    source: EventSource
    employee_id: Optional[int] = None
    reader_id: Optional[str] = None
    location: Optional[str] = None
    anchor_key: Optional[str] = None
    client_key: Optional[str] = None

    @property
    def work_date(self) -> date:
        return self.occurred_at.date()
