"""Timestamp layout used by the feed service.

Times travel as ``YYYY-MM-DDTHH:MM:SS[.ffffff]`` with no offset. The fraction
is written with trailing zeros trimmed and left out entirely on whole seconds.
"""
import re
from datetime import datetime, timezone
from typing import Callable, Optional

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_TIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?", re.ASCII)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    text = value.strftime(TIME_FORMAT)
    if value.year < 1000:
        # strftime does not zero-pad years on every platform
        text = f"{value.year:04d}" + text[text.index("-"):]
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text


def parse_timestamp(text: str) -> Optional[datetime]:
    match = _TIME_RE.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond
        )
    except ValueError:
        return None


__all__ = ["Clock", "TIME_FORMAT", "format_timestamp", "parse_timestamp", "utcnow"]
