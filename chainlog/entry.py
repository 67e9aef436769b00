"""entry.py - LogEntry, the chain-aware log builder.

A LogEntry is built fluently at a call site, emitted once with ``log()``, and
can then travel up the stack as an ordinary exception. Every entry carries a
correlation id:

    Chain root:          ``from_error(err)`` where ``err`` is a foreign
                         exception. A fresh id is assigned.
    Chain continuation:  ``from_error(err)`` where ``err`` is (or wraps) a
                         LogEntry. The id is inherited, so each frame that
                         re-logs the failure lands in the same trace.
    Message:             ``from_message(msg)``. A fresh id is assigned.

Typical usage::

    from chainlog import from_error

    def load(path):
        try:
            return read(path)
        except OSError as exc:
            raise from_error(exc).with_args(path).log() from exc

    def handler(request):
        try:
            return load(request.path)
        except Exception as exc:
            raise from_error(exc).with_message("request failed").log() from exc

Both ``log()`` calls above write one line each with the same ``UUID``; only the
first carries the ``Error`` text.
"""

from enum import Enum
from typing import Any, Iterator, Optional, Union

from .record import Severity, new_correlation_id


class Origin(Enum):
    """How an entry was constructed. Governs the empty-error no-op rule."""

    FROM_ERROR = "error"
    FROM_MESSAGE = "message"


class LogEntry(Exception):
    """A structured log entry that doubles as an exception.

    The structured payload is stored as ``arguments`` because
    ``BaseException.args`` is reserved by the exception machinery.

    Attributes:
        correlation_id (str): Identity of the chain; never empty.
        message (str): Human readable message.
        arguments: Structured payload, attached verbatim to the record.
        severity (Severity): Severity tier.
        wrapped: The error this entry wraps, if any.
        origin (Origin): Which constructor built the entry.
        stack_trace (bool): Whether caller location is captured on emission.
        emitted (bool): Set once the entry has passed through the pipeline.
    """

    def __init__(
        self,
        origin: Origin,
        severity: Severity,
        message: str = "",
        wrapped: Any = None,
        correlation_id: str = "",
        stack_trace: bool = False,
    ) -> None:
        super().__init__()
        self.origin = origin
        self.severity = severity
        self.message = message
        self.wrapped = wrapped
        self.correlation_id = correlation_id or new_correlation_id()
        self.stack_trace = stack_trace
        self.arguments: Any = None
        self.caller: Optional[tuple] = None
        self.emitted = False
        if isinstance(wrapped, BaseException):
            self.__cause__ = wrapped

    # ---------------------------------------------------------------------- #
    # Constructors
    # ---------------------------------------------------------------------- #

    @classmethod
    def from_message(cls, msg: str) -> "LogEntry":
        """Build an INFO entry from a message, with a fresh correlation id."""
        return cls(Origin.FROM_MESSAGE, Severity.INFO, message=msg)

    @classmethod
    def from_error(cls, err: Any) -> "LogEntry":
        """Build an ERROR entry wrapping ``err``.

        If ``err`` is None the entry wraps nothing and emitting it is a no-op,
        so ``from_error(maybe_err).log()`` is safe on the success path.

        Args:
            err: The error being reported. A LogEntry (or an exception whose
                cause chain contains one) continues that entry's chain.

        Returns:
            A new LogEntry with stack trace capture enabled.
        """
        if err is None:
            return cls(Origin.FROM_ERROR, Severity.ERROR, stack_trace=True)
        prior = find_entry(err)
        return cls(
            Origin.FROM_ERROR,
            Severity.ERROR,
            wrapped=err,
            correlation_id=prior.correlation_id if prior is not None else "",
            stack_trace=True,
        )

    # ---------------------------------------------------------------------- #
    # Fluent configuration
    # ---------------------------------------------------------------------- #

    def with_message(self, msg: str) -> "LogEntry":
        self._check_mutable()
        self.message = msg
        return self

    def with_args(self, *args: Any) -> "LogEntry":
        """Attach structured data; stored as a list and serialised verbatim."""
        self._check_mutable()
        self.arguments = list(args)
        return self

    def with_level(self, severity: Union[Severity, int]) -> "LogEntry":
        self._check_mutable()
        self.severity = Severity(severity)
        return self

    def enable_stack_trace(self) -> "LogEntry":
        """Capture the caller's function and line even for message entries."""
        self._check_mutable()
        self.stack_trace = True
        return self

    def with_correlation_id(self, correlation_id: str) -> "LogEntry":
        """Override the correlation id, e.g. with one received from another service.

        An empty value leaves the current id in place.
        """
        self._check_mutable()
        if correlation_id:
            self.correlation_id = correlation_id
        return self

    def with_caller(self, function: str, line: int) -> "LogEntry":
        """Use a known caller location instead of walking the stack."""
        self._check_mutable()
        self.caller = (function, line)
        self.stack_trace = True
        return self

    # ---------------------------------------------------------------------- #
    # Emission and error-value contract
    # ---------------------------------------------------------------------- #

    def log(self) -> "LogEntry":
        """Emit the entry and return it, ready to be raised."""
        from .pipeline import emit

        return emit(self)

    def unwrap(self) -> Any:
        return self.wrapped

    def __str__(self) -> str:
        return str(self.wrapped) if self.wrapped is not None else ""

    def __repr__(self) -> str:
        return (
            f"LogEntry(correlation_id={self.correlation_id!r}, "
            f"severity={self.severity.name}, message={self.message!r})"
        )

    def __reduce__(self):
        # BaseException's default rebuilds with self.args, which is empty here.
        init_args = (
            self.origin,
            self.severity,
            self.message,
            self.wrapped,
            self.correlation_id,
            self.stack_trace,
        )
        return (self.__class__, init_args, self.__dict__)

    def _check_mutable(self) -> None:
        if self.emitted:
            raise RuntimeError("log entry has already been emitted")


def from_message(msg: str) -> LogEntry:
    return LogEntry.from_message(msg)


def from_error(err: Any) -> LogEntry:
    return LogEntry.from_error(err)


# -------------------------------------------------------------------------- #
# Chain inspection
# -------------------------------------------------------------------------- #


def _walk(err: Any) -> Iterator[Any]:
    """Yield ``err`` and every error it wraps, innermost last.

    LogEntry links are followed through ``unwrap()``; other exceptions through
    their explicit ``__cause__``. A link seen twice ends the walk.
    """
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if isinstance(err, LogEntry):
            err = err.unwrap()
        else:
            err = getattr(err, "__cause__", None)


def find_entry(err: Any) -> Optional[LogEntry]:
    """Return the first LogEntry in ``err``'s wrap chain, or None."""
    for link in _walk(err):
        if isinstance(link, LogEntry):
            return link
    return None


def is_caused_by(err: Any, target: Any) -> bool:
    """Return True if ``target`` appears anywhere in ``err``'s wrap chain.

    Args:
        err: The error to inspect, typically a LogEntry caught by a caller.
        target: A sentinel exception instance (matched by identity) or an
            exception class (matched with ``isinstance``).

    Example:
        >>> try:
        ...     load("missing.json")
        ... except LogEntry as exc:
        ...     if is_caused_by(exc, FileNotFoundError):
        ...         ...
    """
    for link in _walk(err):
        if link is target:
            return True
        if isinstance(target, type) and isinstance(link, target):
            return True
    return False
