"""record.py - Wire record, severity scale, and the JSON line codec.

Every emission produces exactly one OutputRecord, serialised as a single
compact JSON object per line::

    {"UUID":"...","Date":"2025-06-25 01:26:02.408736","Error":"EOF","Line":276,"Level":3}

Empty or zero fields are omitted from the serialised form, so a DEBUG record
carries no ``Level`` key and a record without a correlation id carries no
``UUID`` key. Decoding is the mirror image: absent keys fall back to the zero
value of the field.

This module also provides the clock and identity helpers shared by the
emission pipeline and the parser.
"""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class Severity(IntEnum):
    """Ordered severity scale. The integer value is the wire encoding."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4


# (attribute name, wire key, accepted python type)
_FIELDS = (
    ("correlation_id", "UUID", str),
    ("timestamp", "Date", str),
    ("error", "Error", str),
    ("args", "Args", object),
    ("message", "Msg", str),
    ("function", "Function", str),
    ("line", "Line", int),
    ("severity", "Level", int),
)


@dataclass(frozen=True)
class OutputRecord:
    """One emitted log line.

    Attributes:
        correlation_id: Identity of the chain the record belongs to. Empty for
            standalone records.
        timestamp: UTC time of emission in ``TIMESTAMP_FORMAT``.
        error: Rendered text of the wrapped error, only set on the record that
            first observed it.
        args: Structured payload attached by the caller.
        message: Human readable message.
        function: Qualified name of the calling function, if captured.
        line: Line number in the calling function, if captured.
        severity: Severity tier of the record.
    """

    correlation_id: str = ""
    timestamp: str = ""
    error: str = ""
    args: Any = None
    message: str = ""
    function: str = ""
    line: int = 0
    severity: Severity = Severity.DEBUG

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire mapping in key order, omitting empty fields."""
        out: Dict[str, Any] = {}
        for attr, key, _ in _FIELDS:
            value = getattr(self, attr)
            if value is None or value == "" or value == 0 or value == [] or value == {}:
                continue
            out[key] = int(value) if key == "Level" else value
        return out

    @property
    def parsed_timestamp(self) -> Optional[datetime]:
        """The timestamp as a naive UTC datetime, or None if unparsable."""
        return parse_timestamp(self.timestamp)


def encode_record(record: OutputRecord) -> str:
    """Serialise a record to one compact JSON line (no trailing newline).

    Raises:
        TypeError: If ``args`` holds a value json cannot encode.
        ValueError: On circular references or non-finite floats.
    """
    return json.dumps(record.to_dict(), separators=(",", ":"), allow_nan=False)


def decode_record(line: str) -> Optional[OutputRecord]:
    """Parse one JSON line into an OutputRecord.

    Returns None when the line is not a JSON object or when a known key holds
    a value of the wrong type. ``null`` values are treated as absent and
    unknown keys are ignored.

    ``Level`` must name a Severity (0 to 4). A line carrying any other
    integer is rejected like any other mistyped field, so the parser skips it
    rather than inventing a sixth tier.
    """
    try:
        data = json.loads(line.strip())
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None

    values: Dict[str, Any] = {}
    for attr, key, kind in _FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
            return None
        if kind is str and not isinstance(value, str):
            return None
        values[attr] = value

    if "severity" in values:
        try:
            values["severity"] = Severity(values["severity"])
        except ValueError:
            return None
    return OutputRecord(**values)


def fallback_line(exc: BaseException) -> str:
    """Build the minimal FATAL record emitted when encoding a record fails."""
    return json.dumps(
        {
            "UUID": new_correlation_id(),
            "Date": utc_timestamp(),
            "Error": str(exc),
            "Level": int(Severity.FATAL),
        },
        separators=(",", ":"),
    )


def utc_timestamp() -> str:
    """Return the current UTC time as ``YYYY-MM-DD HH:MM:SS.ffffff``."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse a wire timestamp into a naive UTC datetime; None on failure."""
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT)
    except (TypeError, ValueError):
        return None


def new_correlation_id() -> str:
    """Return a fresh, globally unique correlation id (UUID4)."""
    return str(uuid.uuid4())
