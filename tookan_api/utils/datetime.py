from __future__ import annotations

import re
from datetime import date, datetime, timezone


_OFFSET_WITHOUT_COLON_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_SUB_MICROSECOND_RE = re.compile(r"(\.\d{6})\d+")
_ZERO_DATE_RE = re.compile(r"^0{4}-0{2}-0{2}")

# Pickup and delivery times come back in the account's display format.
_DISPLAY_FORMATS = (
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)
_MILLISECOND_EPOCH_FLOOR = 10_000_000_000


def is_placeholder_datetime(value: object) -> bool:
    """Tookan reports unset timestamps as ``0000-00-00 00:00:00``."""

    return isinstance(value, str) and bool(_ZERO_DATE_RE.match(value.strip()))


def _to_iso_candidate(text: str) -> str:
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    for suffix in (" UTC", " GMT"):
        if text.endswith(suffix):
            text = text[: -len(suffix)] + "+00:00"
    text = _OFFSET_WITHOUT_COLON_RE.sub(r"\1:\2", text)
    return _SUB_MICROSECOND_RE.sub(r"\1", text)


def parse_datetime(value: str) -> datetime | None:
    if not isinstance(value, str) or is_placeholder_datetime(value):
        return None
    text = value.strip()
    if not text:
        return None

    try:
        # fromisoformat accepts a space separator on 3.11+.
        return datetime.fromisoformat(_to_iso_candidate(text))
    except ValueError:
        pass

    for fmt in _DISPLAY_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _from_epoch(value: int | float) -> datetime | None:
    seconds = float(value)
    if seconds <= 0:
        return None
    if seconds > _MILLISECOND_EPOCH_FLOOR:
        seconds /= 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OSError, OverflowError, ValueError):
        return None


def coerce_datetime(value: object) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        return parse_datetime(value)
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    return None


def ensure_aware(value: datetime) -> datetime:
    # Offset-less upstream values are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
