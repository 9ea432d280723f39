from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status stored on a record."""

    PRESENT = "present"
    LATE = "late"
    LEAVE = "leave"
    HALF_DAY = "half_day"


class CheckInMethod(str, Enum):
    NFC = "nfc"
    MANUAL = "manual"
    GEOLOCATION = "geolocation"


class TagStatus(str, Enum):
    """Lifecycle of a physical tag binding."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LOST = "lost"
    DAMAGED = "damaged"


class EventKind(str, Enum):
    """Transition requested by an event. TAP carries no open/close hint."""

    OPEN = "open"
    CLOSE = "close"
    TAP = "tap"


class EventSource(str, Enum):
    READER = "reader"
    MOBILE = "mobile"
    MIRROR = "mirror"
    MANUAL = "manual"


class DispatchMode(str, Enum):
    """How hint-less taps are dispatched.

    EXPLICIT rejects taps that do not say whether they open or close the day.
    TOGGLE derives the transition from current state: no open record today
    means open, an open record means close.
    """

    EXPLICIT = "explicit"
    TOGGLE = "toggle"


class Action(str, Enum):
    """Outcome tag returned to the submitter."""

    CHECKIN = "checkin"
    CHECKOUT = "checkout"
