"""JSON wire format for activities.

Unknown top-level keys are carried in ``Activity.metadata`` and written back
out unchanged. Recognized keys are matched case-insensitively on the way in.
``data`` keeps its original JSON text through ``encode`` and ``decode``.
"""
import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from json.decoder import scanstring
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import structlog

from .exceptions import DecodeError, EncodeError
from .feeds import format_feed, parse_feeds
from .models import Activity, FeedID, FeedReference
from .timestamps import Clock, format_timestamp, parse_timestamp, utcnow

logger = structlog.get_logger()

_STRING_FIELDS = {"id", "actor", "verb", "foreign_id", "object", "target"}

RECOGNIZED_FIELDS = frozenset(_STRING_FIELDS | {"origin", "time", "data", "to"})

_WHITESPACE = re.compile(r"[ \t\n\r]*")


@dataclass(frozen=True)
class RawJSON:
    """JSON text written into a document as-is by :func:`dump_json`."""

    text: str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _number(text: str) -> Union[float, Decimal]:
    # floats that would overflow or lose digits keep their exact value
    value = float(text)
    if math.isfinite(value) and Decimal(repr(value)) == Decimal(text):
        return value
    return Decimal(text)


_DECODER = json.JSONDecoder(parse_float=_number, parse_constant=_reject_constant)


def _text(raw: Union[str, bytes, bytearray]) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode(json.detect_encoding(raw), "surrogatepass")
    return raw


def _loads(raw: Union[str, bytes, bytearray]) -> Any:
    return _DECODER.decode(_text(raw))


def _skip(text: str, idx: int) -> int:
    return _WHITESPACE.match(text, idx).end()


def _scan_object(text: str, idx: int = 0) -> List[Tuple[str, Any, str]]:
    """Split a valid JSON object into ``(key, value, raw value text)`` entries."""
    items: List[Tuple[str, Any, str]] = []
    idx = _skip(text, _skip(text, idx) + 1)
    if text[idx] == "}":
        return items
    while True:
        key, idx = scanstring(text, idx + 1)
        idx = _skip(text, _skip(text, idx) + 1)
        value, end = _DECODER.raw_decode(text, idx)
        items.append((key, value, text[idx:end]))
        idx = _skip(text, end)
        if text[idx] == "}":
            return items
        idx = _skip(text, idx + 1)


def _scan_array(text: str, idx: int = 0) -> List[Tuple[Any, str]]:
    """Split a valid JSON array into ``(value, raw value text)`` entries."""
    items: List[Tuple[Any, str]] = []
    idx = _skip(text, _skip(text, idx) + 1)
    if text[idx] == "]":
        return items
    while True:
        value, end = _DECODER.raw_decode(text, idx)
        items.append((value, text[idx:end]))
        idx = _skip(text, end)
        if text[idx] == "]":
            return items
        idx = _skip(text, idx + 1)


def dump_json(value: Any) -> str:
    """Serialize ``value`` like ``json.dumps``, writing ``RawJSON`` and ``Decimal`` verbatim."""
    if isinstance(value, RawJSON):
        return value.text
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"{value} is not valid JSON")
        return str(value)
    if isinstance(value, dict):
        members = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"keys must be str, not {type(key).__name__}")
            members.append(json.dumps(key, ensure_ascii=False) + ": " + dump_json(item))
        return "{" + ", ".join(members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(dump_json(item) for item in value) + "]"
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def encode_payload(activity: Activity, clock: Clock = utcnow) -> Dict[str, Any]:
    """Build the wire mapping; serialize it with :func:`dump_json`."""
    payload: Dict[str, Any] = {}
    shadowed = []
    for key, value in activity.metadata.items():
        if key.lower() in RECOGNIZED_FIELDS:
            shadowed.append(key)
            continue
        payload[key] = value

    payload["actor"] = activity.actor
    payload["verb"] = activity.verb
    payload["object"] = activity.object
    payload["origin"] = activity.origin.value()

    if activity.id:
        payload["id"] = activity.id
    if activity.target:
        payload["target"] = activity.target

    if activity.data is not None:
        try:
            _loads(activity.data)
        except (ValueError, RecursionError) as exc:
            logger.warning("activity_encode_failed", field="data", error=str(exc))
            raise EncodeError("Activity data is not valid JSON.", details={"field": "data"}) from exc
        payload["data"] = RawJSON(activity.data)

    if activity.foreign_id:
        payload["foreign_id"] = activity.foreign_id

    timestamp = activity.timestamp if activity.timestamp is not None else clock()
    payload["time"] = format_timestamp(timestamp)

    tos = [format_feed(feed) for feed in activity.to]
    if tos:
        payload["to"] = tos

    for key in shadowed:
        if key not in payload:
            logger.debug("activity_metadata_key_dropped", field=key)

    return payload


def encode(activity: Activity, clock: Clock = utcnow) -> bytes:
    payload = encode_payload(activity, clock=clock)
    try:
        return dump_json(payload).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        logger.warning("activity_encode_failed", error=str(exc))
        raise EncodeError(f"Activity could not be serialized: {exc}") from exc


def _string(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    logger.debug("activity_field_not_string", field=key, type=type(value).__name__)
    return ""


def _strings(value: Any) -> Optional[List[str]]:
    """Return ``value`` as a list of strings, or None if it is not one."""
    if not isinstance(value, list):
        return None
    if not all(item is None or isinstance(item, str) for item in value):
        return None
    return [item or "" for item in value]


def _flatten_to(value: Any) -> Optional[List[str]]:
    flat = _strings(value)
    if flat is not None:
        return flat
    if not isinstance(value, list):
        return None

    rows: List[List[str]] = []
    for item in value:
        if item is None:
            continue
        row = _strings(item)
        if row is None:
            return None
        rows.append(row)

    flat = []
    for row in rows:
        if len(row) == 2:
            # ["slug:id", "token"] or a bare ["slug", "id"] pair
            separator = " " if ":" in row[0] else ":"
            flat.append(row[0] + separator + row[1])
        elif len(row) == 1:
            flat.append(row[0])
    return flat


def _decode_to(value: Any) -> List[FeedReference]:
    flat = _flatten_to(value)
    if flat is None:
        logger.debug("activity_to_unrecognized", type=type(value).__name__)
        return []
    feeds = parse_feeds(flat)
    if len(feeds) < len(flat):
        logger.debug("activity_to_entries_dropped", entries=len(flat), matched=len(feeds))
    return feeds


def _assemble(entries: Iterable[Tuple[str, Any, Optional[str]]]) -> Activity:
    fields: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}

    for key, value, raw in entries:
        if value is None:
            continue
        name = key.lower()

        if name in _STRING_FIELDS:
            fields[name] = _string(key, value)
        elif name == "origin":
            fields["origin"] = FeedID(_string(key, value))
        elif name == "time":
            text = _string(key, value)
            fields["timestamp"] = parse_timestamp(text)
            if fields["timestamp"] is None:
                logger.debug("activity_time_unparsed", value=text)
        elif name == "data":
            fields["data"] = raw if raw is not None else dump_json(value)
        elif name == "to":
            fields["to"] = _decode_to(value)
        else:
            metadata[key] = value

    return Activity(metadata=metadata, **fields)


def decode_payload(payload: Mapping[str, Any]) -> Activity:
    """Decode an already parsed mapping; ``data`` is re-serialized with :func:`dump_json`."""
    return _assemble((key, value, None) for key, value in payload.items())


def decode(raw: Union[str, bytes, bytearray]) -> Activity:
    try:
        text = _text(raw)
        payload = _loads(text)
        if not isinstance(payload, dict):
            logger.warning("activity_decode_failed", type=type(payload).__name__)
            raise DecodeError(details={"type": type(payload).__name__})
        return _assemble(_scan_object(text))
    except (ValueError, RecursionError) as exc:
        logger.warning("activity_decode_failed", error=str(exc))
        raise DecodeError(f"Activity payload is not valid JSON: {exc}") from exc


def decode_many(raw: Union[str, bytes, bytearray], key: str = "results") -> List[Activity]:
    """Decode a list response such as ``{"results": [...]}``."""
    try:
        text = _text(raw)
        payload = _loads(text)
        if not isinstance(payload, dict):
            raise DecodeError("Activity list response is not a JSON object.")

        items = payload.get(key) or []
        if not isinstance(items, list):
            raise DecodeError(
                f"Activity list response field {key!r} is not a list.", details={"field": key}
            )
        if not items:
            return []

        raw_items = [entry for entry in _scan_object(text) if entry[0] == key][-1][2]
        activities = []
        for index, (item, item_text) in enumerate(_scan_array(raw_items)):
            if not isinstance(item, dict):
                raise DecodeError(details={"field": key, "index": index})
            activities.append(_assemble(_scan_object(item_text)))
        return activities
    except (ValueError, RecursionError) as exc:
        logger.warning("activity_decode_failed", error=str(exc))
        raise DecodeError(f"Activity list is not valid JSON: {exc}") from exc


__all__ = [
    "RECOGNIZED_FIELDS",
    "RawJSON",
    "decode",
    "decode_many",
    "decode_payload",
    "dump_json",
    "encode",
    "encode_payload",
]
