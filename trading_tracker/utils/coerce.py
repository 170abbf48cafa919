import math
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateutil_parser

# epoch values above this are treated as milliseconds
_EPOCH_MS_THRESHOLD = 1e11


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_num(value: Any) -> Optional[float]:
    """
    Lenient numeric coercion: numbers and numeric-looking strings.
    Anything else (None, "", "abc", NaN, booleans) resolves to None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            n = float(s)
        except ValueError:
            return None
    else:
        return None

    return n if math.isfinite(n) else None


def num0(value: Any) -> float:
    n = as_num(value)
    return n if n is not None else 0.0


def clean_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None


def upper_str(value: Any) -> Optional[str]:
    s = clean_str(value)
    return s.upper() if s else None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    ISO-8601 strings, datetimes, or epoch seconds / milliseconds.
    Naive values are taken as UTC. Unparsable input returns None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    n = as_num(value)
    if n is not None:
        if n > _EPOCH_MS_THRESHOLD:
            n = n / 1000.0
        try:
            return datetime.fromtimestamp(n, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    s = clean_str(value)
    if not s:
        return None
    try:
        return _as_utc(dateutil_parser.isoparse(s))
    except (ValueError, OverflowError):
        pass
    try:
        return _as_utc(dateutil_parser.parse(s))
    except (ValueError, OverflowError):
        return None


def timestamp_or_now(value: Any, now: Optional[datetime] = None) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is not None:
        return parsed
    return now or utcnow()
