"""handler.py - Route standard ``logging`` records through the chain pipeline.

ChainLogHandler lets existing ``logging`` call sites produce chainlog records
without rewriting them. Each LogRecord becomes one LogEntry:

    - ``logger.exception(...)`` / ``exc_info=`` records wrap the exception with
      ``from_error``. If that exception is a LogEntry (or wraps one), the record
      joins its chain.
    - Every other record becomes ``from_message``.

Typical usage::

    import logging
    import chainlog

    logging.getLogger().addHandler(chainlog.ChainLogHandler())
    log = logging.getLogger("billing")

    log.info("charge started", extra={"chain_args": [order_id]})
    try:
        charge(order_id)
    except chainlog.LogEntry:
        log.exception("charge failed")   # same UUID as the inner chain
"""

import logging

from .entry import LogEntry
from .record import Severity

_PACKAGE = __name__.split(".")[0]


def severity_for(levelno: int) -> Severity:
    """Map a ``logging`` level number onto the Severity scale."""
    if levelno < logging.INFO:
        return Severity.DEBUG
    if levelno < logging.WARNING:
        return Severity.INFO
    if levelno < logging.ERROR:
        return Severity.WARN
    if levelno < logging.CRITICAL:
        return Severity.ERROR
    return Severity.FATAL


class ChainLogHandler(logging.Handler):
    """A logging.Handler that emits each record as a chainlog line.

    The handler's own level filters first; the process-wide chainlog level
    set with ``chainlog.set_level()`` is applied afterwards by the pipeline.

    Records produced by chainlog's own loggers are dropped so that a
    diagnostic raised while emitting cannot loop back into the pipeline.

    Example:
        >>> import logging, chainlog
        >>> logging.getLogger().addHandler(chainlog.ChainLogHandler())
        >>> logging.getLogger("myapp").warning("disk at %d%%", 91)
    """

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.split(".")[0] == _PACKAGE:
            return
        try:
            self.to_entry(record).log()
        except Exception:
            self.handleError(record)

    def to_entry(self, record: logging.LogRecord) -> LogEntry:
        """Convert ``record`` into an unemitted LogEntry."""
        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            entry = LogEntry.from_error(exc).with_message(record.getMessage())
        else:
            entry = LogEntry.from_message(record.getMessage())

        entry.with_level(severity_for(record.levelno))
        entry.with_caller(f"{record.name}.{record.funcName}", record.lineno)

        chain_args = getattr(record, "chain_args", None)
        if isinstance(chain_args, (list, tuple)):
            entry.with_args(*chain_args)
        elif chain_args is not None:
            entry.with_args(chain_args)
        return entry
