from __future__ import annotations

import re
from typing import Any, Optional

from ..core.exceptions import ValidationError

_TAG_SEPARATORS = re.compile(r"[:\s]")


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def clean_tag_id(value: Any) -> str:
    """Canonical tag identifier: colons and whitespace removed, upper-cased.

    ``04:a3:32:bc`` and ``04A332BC`` resolve to the same tag and therefore
    to the same log key on every ingestion path.
    """
    raw = require_non_empty(value, "tagId")
    cleaned = _TAG_SEPARATORS.sub("", raw).upper()
    if not cleaned:
        raise ValidationError("tagId is required")
    return cleaned


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be an integer") from e
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number
