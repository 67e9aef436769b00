"""chainlog/__init__.py - Public API for the chainlog package.

chainlog is a structured JSON-lines logger with error-chain correlation.
Each ``log()`` call writes one record; records written while one failure
propagates up the stack share a correlation id, and only the innermost one
repeats the error text. The Parser later rebuilds those records into ordered
traces.

Quick start:
    import chainlog
    from chainlog import from_error, from_message

    # 1. Optional process-wide settings (defaults: level DEBUG, output stderr)
    chainlog.set_level(chainlog.Severity.INFO)

    # 2. Log plain messages
    from_message("job started").with_args(job_id).log()

    # 3. Log and re-raise errors; outer frames continue the same chain
    try:
        fetch(url)
    except OSError as exc:
        raise from_error(exc).with_args(url).log() from exc

    # 4. Rebuild traces offline
    parsed = chainlog.Parser().from_file("app.log").parse()

Exported names:
    LogEntry:          The chain-aware builder; also an Exception.
    from_error:        Start or continue a chain from an error.
    from_message:      Build a standalone message entry.
    find_entry:        First LogEntry in an error's wrap chain, if any.
    is_caused_by:      Sentinel check that walks the whole wrap chain.
    Severity:          DEBUG < INFO < WARN < ERROR < FATAL.
    OutputRecord:      One emitted (or parsed) line.
    Parser:            Offline trace reconstruction.
    ChainLogHandler:   Bridge from the standard logging module.
    logged:            Decorator that logs exceptions leaving a function.
    set_level / set_output / captured / clear_captured / reset:
                       Process-wide configuration.
"""

import logging

from .config import (
    Output,
    captured,
    clear_captured,
    get_level,
    get_sink,
    reset,
    set_level,
    set_output,
)
from .entry import LogEntry, Origin, find_entry, from_error, from_message, is_caused_by
from .handler import ChainLogHandler
from .instrument import logged
from .parser import ParsedErrorTrace, ParsedLogs, Parser
from .pipeline import emit
from .record import OutputRecord, Severity, decode_record, encode_record
from .sink import FileSink, MemorySink, Sink, StreamSink

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "LogEntry",
    "Origin",
    "from_error",
    "from_message",
    "find_entry",
    "is_caused_by",
    "emit",
    "Severity",
    "OutputRecord",
    "encode_record",
    "decode_record",
    "Parser",
    "ParsedLogs",
    "ParsedErrorTrace",
    "ChainLogHandler",
    "logged",
    "Output",
    "set_level",
    "set_output",
    "get_level",
    "get_sink",
    "captured",
    "clear_captured",
    "reset",
    "Sink",
    "StreamSink",
    "MemorySink",
    "FileSink",
]
__version__ = "0.1.0"
