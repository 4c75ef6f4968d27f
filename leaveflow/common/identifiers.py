"""Canonical forms for identifiers and date/time values crossing a storage boundary."""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Optional

from leaveflow.common.constants import CANONICAL_ID_WIDTH

_NUMERIC_ID = re.compile(r"^\d+$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Lower-case quota keys sent by the remote backend -> leave type ids
_QUOTA_KEY_MAP = {
    "sick": "SICK",
    "vacation": "VACATION",
    "personal": "PERSONAL",
    "maternity": "MATERNITY",
    "sterilization": "STERILIZATION",
    "other": "OTHER",
    "ordination": "ORDINATION",
    "military": "MILITARY",
    "paternity": "PATERNITY",
}


def canonical_id(raw: Any) -> str:
    """Normalize an id so that 4, "4" and "004" all become "004".

    Non-numeric ids are only stripped. ``None`` becomes an empty string.
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if _NUMERIC_ID.match(text):
        return str(int(text)).zfill(CANONICAL_ID_WIDTH)
    return text


def optional_canonical_id(raw: Any) -> Optional[str]:
    value = canonical_id(raw)
    return value or None


def canonical_leave_type_id(raw: Any) -> str:
    return str(raw if raw is not None else "").strip().upper()


def quota_key(raw: Any) -> str:
    text = str(raw).strip()
    return _QUOTA_KEY_MAP.get(text.lower(), text.upper())


def is_iso_date(value: Any) -> bool:
    """True for a well-formed, existing "YYYY-MM-DD" string."""
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def date_only(raw: Any) -> Any:
    """Cut timestamps such as "2026-02-01T00:00:00.000Z" down to the date part."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, str):
        text = raw.strip()
        if "T" in text:
            return text.split("T", 1)[0]
        if " " in text:
            return text.split(" ", 1)[0]
        return text
    return raw


def time_only(raw: Any) -> Any:
    """Keep "HH:MM:SS" from time strings carrying fractions or offsets."""
    if raw is None or isinstance(raw, time):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    return text[:8]
