"""config.py - Process-wide emission settings.

Two settings govern every emission:

    Level:  The minimum Severity that is written. Default ``Severity.DEBUG``,
            i.e. everything is emitted.
    Output: Where lines go. Default ``Output.STDERR``.

The settings live in an immutable ``_Settings`` snapshot. Setters build a new
snapshot and swap it in under a lock; readers take the current reference
without locking. An emission therefore always sees a level and a sink that
were configured together, no matter how many threads emit or reconfigure
concurrently.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .record import Severity
from .sink import MemorySink, Sink, StreamSink


class Output(Enum):
    """Built-in output destinations."""

    STDERR = "stderr"
    STDOUT = "stdout"
    MEMORY = "memory"


# Backing store for Output.MEMORY; shared for the lifetime of the process.
_memory = MemorySink()
_stderr = StreamSink(name="stderr")
_stdout = StreamSink(name="stdout")

_BUILTIN_SINKS = {
    Output.STDERR: _stderr,
    Output.STDOUT: _stdout,
    Output.MEMORY: _memory,
}


@dataclass(frozen=True)
class _Settings:
    level: Severity
    sink: Sink


_DEFAULTS = _Settings(level=Severity.DEBUG, sink=_stderr)

_write_lock = threading.Lock()
_settings = _DEFAULTS


def snapshot() -> _Settings:
    """Return the current settings snapshot."""
    return _settings


def set_level(level: Union[Severity, int]) -> None:
    """Set the minimum severity that will be emitted.

    Raises:
        ValueError: If ``level`` is not a valid Severity value.
    """
    global _settings
    level = Severity(level)
    with _write_lock:
        _settings = _Settings(level=level, sink=_settings.sink)


def set_output(output: Union[Output, Sink]) -> None:
    """Select where emitted lines are written.

    Args:
        output: A built-in ``Output`` member, or any ``Sink`` instance for a
            custom destination.

    Raises:
        TypeError: If ``output`` is neither an Output nor a Sink.
    """
    global _settings
    if isinstance(output, Output):
        sink = _BUILTIN_SINKS[output]
    elif isinstance(output, Sink):
        sink = output
    else:
        raise TypeError(f"output must be an Output or a Sink, got {type(output).__name__}")
    with _write_lock:
        _settings = _Settings(level=_settings.level, sink=sink)


def get_level() -> Severity:
    return _settings.level


def get_sink() -> Sink:
    return _settings.sink


def should_emit(severity: Union[Severity, int], settings: Optional[_Settings] = None) -> bool:
    """Return True if a record of ``severity`` passes the configured level.

    Args:
        severity: The severity to test.
        settings: A snapshot already taken by the caller, so the level checked
            here belongs to the same configuration as the sink written to.
            Defaults to the current snapshot.
    """
    if settings is None:
        settings = snapshot()
    return severity >= settings.level


def captured() -> str:
    """Return everything written to ``Output.MEMORY`` so far."""
    return _memory.getvalue()


def clear_captured() -> None:
    """Empty the ``Output.MEMORY`` buffer."""
    _memory.clear()


def reset() -> None:
    """Restore default settings and clear the memory buffer."""
    global _settings
    with _write_lock:
        _settings = _DEFAULTS
    _memory.clear()
