"""parser.py - Rebuild correlated traces from emitted log lines.

The Parser reads lines previously written by the emission pipeline and splits
them into standalone entries (no correlation id) and traces (one per id).
Within a trace the frames are put back into chronological order and the error
text is hoisted to the trace, so a failure logged at five stack levels shows
up once, with five ordered frames.

Malformed lines are skipped silently: log files are append-only and may be
cut off mid-write, so a partial last line is expected rather than exceptional.

Typical usage::

    from chainlog import Parser

    parsed = Parser().from_file("/var/log/app/chain.log").parse()
    for trace in parsed.traces:
        print(trace.correlation_id, trace.error)
        for frame in trace.frames:
            print("   ", frame.timestamp, frame.function, frame.line, frame.message)
"""

import io
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

from .record import OutputRecord, TIMESTAMP_FORMAT, decode_record, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class ParsedErrorTrace:
    """One reconstructed chain.

    Attributes:
        correlation_id: The id shared by every frame.
        error: The first non-empty error text seen for the id, in input order.
        frames: Records of the chain, oldest first, with their own error text
            cleared.
    """

    correlation_id: str
    error: str = ""
    frames: List[OutputRecord] = field(default_factory=list)


@dataclass
class ParsedLogs:
    """Result of a parse run.

    Attributes:
        entries: Standalone records, in input order.
        traces: One trace per distinct correlation id. Callers should not rely
            on the order of this list.
    """

    entries: List[OutputRecord] = field(default_factory=list)
    traces: List[ParsedErrorTrace] = field(default_factory=list)

    def get_trace(self, correlation_id: str) -> Optional[ParsedErrorTrace]:
        for trace in self.traces:
            if trace.correlation_id == correlation_id:
                return trace
        return None


class Parser:
    """Accumulates log lines from one or more sources and parses them.

    Every ``from_*`` method appends to the same line buffer and returns the
    parser, so sources can be chained::

        Parser().from_file("a.log").from_file("b.log").after(cutoff).parse()

    A Parser is not meant to be shared between threads.
    """

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._after: Optional[datetime] = None

    # ---------------------------------------------------------------------- #
    # Sources
    # ---------------------------------------------------------------------- #

    def from_reader(self, reader: Iterable[Union[str, bytes]]) -> "Parser":
        """Read every line from a text or binary stream.

        Bytes are decoded as UTF-8; undecodable bytes are replaced rather than
        failing the whole read.
        """
        for raw in reader:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            self._lines.append(raw.rstrip("\r\n"))
        return self

    def from_file(self, path: str) -> "Parser":
        """Read every line of the file at ``path``.

        Raises:
            OSError: If the file cannot be opened.
        """
        with open(path, "rb") as f:
            return self.from_reader(f)

    def from_string(self, content: str) -> "Parser":
        return self.from_reader(io.StringIO(content))

    def from_lines(self, lines: Iterable[str]) -> "Parser":
        self._lines.extend(lines)
        return self

    def after(self, threshold: Union[datetime, str]) -> "Parser":
        """Keep only records timestamped strictly after ``threshold``.

        Args:
            threshold: A datetime (naive values are taken as UTC, aware ones
                are converted to UTC) or a string in the wire timestamp format.

        Raises:
            ValueError: If a string threshold does not match the wire format.
        """
        if isinstance(threshold, str):
            threshold = datetime.strptime(threshold, TIMESTAMP_FORMAT)
        elif threshold.tzinfo is not None:
            threshold = threshold.astimezone(timezone.utc).replace(tzinfo=None)
        self._after = threshold
        return self

    # ---------------------------------------------------------------------- #
    # Parsing
    # ---------------------------------------------------------------------- #

    def parse(self) -> ParsedLogs:
        """Split the buffered lines into standalone entries and traces.

        Returns:
            A ParsedLogs. Empty or entirely malformed input yields an empty
            result, never an exception.
        """
        parsed = ParsedLogs()
        groups: Dict[str, List[OutputRecord]] = {}
        errors: Dict[str, str] = {}
        skipped = 0

        for line in self._lines:
            if not line.strip():
                continue
            record = decode_record(line)
            if record is None or not self._keep(record):
                skipped += 1
                continue

            if not record.correlation_id:
                parsed.entries.append(record)
                continue

            cid = record.correlation_id
            if record.error and not errors.get(cid):
                errors[cid] = record.error
            groups.setdefault(cid, []).append(replace(record, error=""))

        for cid, frames in groups.items():
            frames.sort(key=_frame_time)
            parsed.traces.append(
                ParsedErrorTrace(correlation_id=cid, error=errors.get(cid, ""), frames=frames)
            )

        if skipped:
            logger.debug("skipped %d malformed or filtered line(s)", skipped)
        return parsed

    def _keep(self, record: OutputRecord) -> bool:
        if self._after is None:
            return True
        ts = parse_timestamp(record.timestamp)
        return ts is not None and ts > self._after


def _frame_time(record: OutputRecord) -> datetime:
    # Unparsable timestamps sort first; list.sort is stable, so ties keep input order.
    return parse_timestamp(record.timestamp) or datetime.min
