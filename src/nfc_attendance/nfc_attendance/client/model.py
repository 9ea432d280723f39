from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional

from ..core.exceptions import (
    DayAlreadyClosed,
    EmployeeNotFound,
    InvalidTimestamp,
    TagInactive,
    TagNotFound,
    TagUnassigned,
    ValidationError,
)

PENDING_TYPES = ("checkin", "checkout", "tap")

# Domain rejections that no amount of retrying will change. Any other answer,
# including a missing or unknown code, keeps the tap queued.
PERMANENT_CODES = frozenset(
    {
        ValidationError.code,
        TagNotFound.code,
        TagInactive.code,
        TagUnassigned.code,
        EmployeeNotFound.code,
        InvalidTimestamp.code,
        DayAlreadyClosed.code,
    }
)


class SubmitOutcome(str, Enum):
    ACCEPTED = "accepted"
    ALREADY_PROCESSED = "already_processed"
    REJECTED = "rejected"
    RETRY = "retry"


class TransientSubmitError(Exception):
    """Network-class failure: the server could not be reached or did not answer."""


@dataclass(frozen=True)
class SubmitResult:
    outcome: SubmitOutcome
    code: Optional[str] = None
    message: str = ""

    @property
    def acknowledged(self) -> bool:
        return self.outcome in (SubmitOutcome.ACCEPTED, SubmitOutcome.ALREADY_PROCESSED)


def outcome_for_code(code: Optional[str]) -> SubmitOutcome:
    return SubmitOutcome.REJECTED if code in PERMANENT_CODES else SubmitOutcome.RETRY


@dataclass(frozen=True)
class PendingEvent:
    """A tap captured while offline, persisted client-side until acknowledged."""

    local_id: str
    type: str
    tag_id: str
    timestamp: str
    reader_id: Optional[str] = None
    location: Optional[str] = None

    @property
    def occurred_at(self) -> datetime:
        """Capture instant on the local clock, comparable across UTC offsets."""
        value = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value

    def to_dict(self) -> dict:
        return {
            "localId": self.local_id,
            "type": self.type,
            "tagId": self.tag_id,
            "timestamp": self.timestamp,
            "readerId": self.reader_id,
            "location": self.location,
        }

    def to_submission(self) -> dict:
        """Body of the same request the online flow sends."""
        body = {
            "tagId": self.tag_id,
            "occurredAt": self.timestamp,
            "readerId": self.reader_id,
            "location": self.location,
        }
        if self.type != "tap":
            body["type"] = self.type
        return body

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PendingEvent":
        return cls(
            local_id=str(data["localId"]),
            type=str(data.get("type") or "tap"),
            tag_id=str(data["tagId"]),
            timestamp=str(data["timestamp"]),
            reader_id=data.get("readerId"),
            location=data.get("location"),
        )


@dataclass
class ReplayReport:
    accepted: List[str] = field(default_factory=list)
    already_processed: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)
    remaining: int = 0
    interrupted: bool = False

    @property
    def acknowledged(self) -> int:
        return len(self.accepted) + len(self.already_processed)
