"""pipeline.py - Turns a LogEntry into exactly one written line.

``emit()`` is the only place where output happens. Filtering, record
construction and encoding are side-effect free; the sink write is the single
side effect, and it happens at most once per call.
"""

import logging
import sys
from typing import Tuple

from . import config
from .entry import LogEntry, Origin, find_entry
from .record import OutputRecord, encode_record, fallback_line, utc_timestamp

logger = logging.getLogger(__name__)

_PACKAGE = __name__.split(".")[0]


def emit(entry: LogEntry) -> LogEntry:
    """Write ``entry`` to the configured sink and return it.

    Nothing is written when the entry was already emitted, when its severity
    is below the configured level, or when it was built from an error but
    wraps none. In those cases the entry is returned unchanged.

    If the record cannot be encoded (``args`` holds an object json does not
    understand, or nests deeper than the encoder can recurse) a FATAL
    fallback record describing the encode failure is written instead, so the
    caller never sees the encoder's exception.

    Args:
        entry: The entry to emit.

    Returns:
        The same entry, so call sites can ``raise entry.log()``.
    """
    if entry.emitted:
        return entry
    settings = config.snapshot()
    if not config.should_emit(entry.severity, settings):
        return entry
    if entry.origin is Origin.FROM_ERROR and entry.wrapped is None:
        return entry

    record = build_record(entry)
    try:
        line = encode_record(record)
    except (TypeError, ValueError, RecursionError) as exc:
        logger.warning("could not encode log record %s: %s", record.correlation_id, exc)
        line = fallback_line(exc)

    settings.sink.write(line)
    entry.emitted = True
    return entry


def build_record(entry: LogEntry) -> OutputRecord:
    """Build the OutputRecord for ``entry`` as of now.

    The wrapped error's text is only included when no LogEntry sits in its
    wrap chain. An inner LogEntry has already written that text on its own
    emission; repeating it would duplicate the string once per stack frame.
    """
    error = ""
    if entry.wrapped is not None and find_entry(entry.wrapped) is None:
        error = str(entry.wrapped)

    function, line = "", 0
    if entry.caller is not None:
        function, line = entry.caller
    elif entry.stack_trace:
        function, line = capture_caller_location()

    return OutputRecord(
        correlation_id=entry.correlation_id,
        timestamp=utc_timestamp(),
        error=error,
        args=entry.arguments,
        message=entry.message,
        function=function,
        line=line,
        severity=entry.severity,
    )


def capture_caller_location() -> Tuple[str, int]:
    """Return ``(function, line)`` of the nearest frame outside this package.

    The function is rendered as ``<module>.<qualname>``. Returns ``("", 0)``
    if every frame on the stack belongs to the package.
    """
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module.split(".")[0] != _PACKAGE:
            code = frame.f_code
            name = getattr(code, "co_qualname", code.co_name)
            return f"{module}.{name}", frame.f_lineno
        frame = frame.f_back
    return "", 0
