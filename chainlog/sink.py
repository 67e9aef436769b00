"""sink.py - Pluggable destinations for emitted log lines.

A Sink receives one fully serialised JSON line per emission and is
responsible for appending it to wherever it persists output. Three concrete
implementations are provided:

    StreamSink : writes to a text stream (default: the process's stderr).
    MemorySink : keeps lines in memory; backs the ``Output.MEMORY`` setting
                 and is the intended target for tests.
    FileSink   : appends lines to a file on disk.

Any object implementing ``Sink`` can be passed to ``chainlog.set_output()``.

Typical usage::

    import chainlog
    from chainlog.sink import FileSink

    chainlog.set_output(FileSink("/var/log/app/chain.log"))
"""

import os
import sys
import threading
from abc import ABC, abstractmethod
from typing import List


class Sink(ABC):
    """Abstract base class for all emission destinations.

    Example:
        >>> class ListSink(Sink):
        ...     def __init__(self):
        ...         self.items = []
        ...     def write(self, line: str) -> None:
        ...         self.items.append(line)
    """

    @abstractmethod
    def write(self, line: str) -> None:
        """Append exactly one line to the destination.

        Args:
            line: A serialised record without a trailing newline.
        """


class StreamSink(Sink):
    """Write lines to a text stream.

    When no stream object is supplied the sink looks up ``sys.<name>`` on
    every write, so it follows later reassignment of the standard streams
    (pytest's ``capsys``, ``contextlib.redirect_stderr`` and friends).

    Attributes:
        _stream: The explicit stream, or None to resolve ``sys.<name>``.
        _name: ``"stderr"`` or ``"stdout"``.
    """

    def __init__(self, stream=None, name: str = "stderr") -> None:
        if name not in ("stderr", "stdout"):
            raise ValueError(f"name must be 'stderr' or 'stdout', got {name!r}")
        self._stream = stream
        self._name = name
        self._lock = threading.Lock()

    @property
    def stream(self):
        return self._stream if self._stream is not None else getattr(sys, self._name)

    def write(self, line: str) -> None:
        stream = self.stream
        with self._lock:
            stream.write(line + "\n")
            stream.flush()

    def __repr__(self) -> str:  # pragma: no cover
        target = self._name if self._stream is None else repr(self._stream)
        return f"StreamSink({target})"


class MemorySink(Sink):
    """Keep emitted lines in memory.

    Appends are serialised with a lock so concurrent emitters never interleave
    partial lines.

    Example:
        >>> sink = MemorySink()
        >>> sink.write('{"Msg":"hello","Level":1}')
        >>> sink.getvalue()
        '{"Msg":"hello","Level":1}\\n'
    """

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def write(self, line: str) -> None:
        with self._lock:
            self._lines.append(line.strip())

    def lines(self) -> List[str]:
        """Return a copy of the captured lines, oldest first."""
        with self._lock:
            return list(self._lines)

    def getvalue(self) -> str:
        """Return the captured lines joined as newline-terminated text."""
        with self._lock:
            return "".join(line + "\n" for line in self._lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


class FileSink(Sink):
    """Append lines to a file on disk.

    The file and any missing parent directories are created on first write.
    Rotation and retention are left to external tooling (logrotate and the
    like); the sink only ever appends.

    Attributes:
        _path (str): Path to the output file.
        _encoding (str): File encoding. Defaults to ``"utf-8"``.
    """

    def __init__(self, path: str, encoding: str = "utf-8") -> None:
        self._path = path
        self._encoding = encoding
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def write(self, line: str) -> None:
        with self._lock:
            self._ensure_dir()
            with open(self._path, "a", encoding=self._encoding) as f:
                f.write(line + "\n")

    def _ensure_dir(self) -> None:
        """Create parent directories for the file if they do not exist."""
        parent = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(parent, exist_ok=True)
