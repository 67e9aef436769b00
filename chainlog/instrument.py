"""instrument.py - Optional @logged decorator for exception chains.

``@logged`` records a chain frame whenever an exception escapes the decorated
function, then raises the emitted LogEntry in place of the original
exception (which stays reachable as ``__cause__`` and through
``is_caused_by``). Stacking decorated functions therefore yields one
correlated trace: the innermost frame carries the error text, every outer
frame carries its own function, line, and arguments.

Usage:
    @logged is opt-in. Apply it to functions whose arguments are worth having
    in a post-mortem.

    from chainlog import logged

    @logged
    def charge(user_id: int, amount: int) -> Receipt:
        ...

Note:
    Callers of a decorated function see a LogEntry rather than the original
    exception type. Use ``chainlog.is_caused_by(exc, ValueError)`` to test
    for the underlying cause.
"""

import inspect
from functools import wraps
from typing import Callable, List

from .entry import LogEntry


def logged(func: Callable) -> Callable:
    """Decorator that emits a chain frame for any exception leaving ``func``.

    The frame's message is ``func``'s qualified name; its args are the bound
    call arguments rendered as ``name=repr(value)``; its caller location is
    the line inside ``func`` where the exception passed through.

    Args:
        func: The callable to wrap. Async functions are not supported.

    Returns:
        A wrapped callable with the same name and docstring as ``func``.

    Raises:
        LogEntry: The emitted frame, chained ``from`` the original exception.

    Example:
        >>> @logged
        ... def divide(a, b):
        ...     return a / b
        >>> divide(1, 0)   # writes a frame with Error "division by zero"
        Traceback (most recent call last):
        ...
        chainlog.entry.LogEntry: division by zero
    """
    location = f"{func.__module__}.{func.__qualname__}"

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            entry = (
                LogEntry.from_error(exc)
                .with_message(func.__qualname__)
                .with_args(*_bound_arguments(func, args, kwargs))
                .with_caller(location, _failing_line(exc, func))
            )
            raise entry.log() from exc

    return wrapper


def _bound_arguments(func: Callable, args: tuple, kwargs: dict) -> List[str]:
    # C extensions and odd signatures fall back to no arguments.
    try:
        bound = inspect.signature(func).bind(*args, **kwargs)
        bound.apply_defaults()
    except (TypeError, ValueError):
        return []
    return [f"{k}={v!r}" for k, v in bound.arguments.items()]


def _failing_line(exc: BaseException, func: Callable) -> int:
    """Line in ``func``'s own frame where ``exc`` passed through."""
    code = getattr(func, "__code__", None)
    tb = exc.__traceback__
    while tb is not None:
        if tb.tb_frame.f_code is code:
            return tb.tb_lineno
        tb = tb.tb_next
    return getattr(code, "co_firstlineno", 0)
