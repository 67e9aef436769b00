"""test_instrument.py - Unit and integration tests for the @logged decorator.

Covers:
    - Normal returns pass through and write nothing
    - An escaping exception is emitted and re-raised as a LogEntry
    - The original exception stays reachable as __cause__
    - Bound arguments (positional, keyword, defaults) land in Args
    - Function and line point at the decorated function's failing line
    - Nested decorated calls form one correlated chain with one Error text
    - functools.wraps metadata is preserved
"""

import json
import sys

import pytest

import chainlog
from chainlog.entry import LogEntry
from chainlog.instrument import logged
from chainlog.parser import Parser


def _records():
    return [json.loads(line) for line in chainlog.captured().splitlines() if line]


_LINES = {}


@logged
def _fetch_balance(user_id: int) -> int:
    _LINES["fetch"] = sys._getframe().f_lineno + 1
    raise ConnectionError(f"db unreachable for {user_id}")


@logged
def _pay(user_id: int, amount: int, currency: str = "EUR") -> None:
    _LINES["pay"] = sys._getframe().f_lineno + 1
    _fetch_balance(user_id)


# ---------------------------------------------------------------------------
# Basic behaviour
# ---------------------------------------------------------------------------


class TestLoggedBasics:
    def test_return_value_passes_through(self):
        @logged
        def add(a, b):
            return a + b

        assert add(3, 5) == 8
        assert chainlog.captured() == ""

    def test_exception_is_reraised_as_log_entry(self):
        @logged
        def explode():
            raise ValueError("kaboom")

        with pytest.raises(LogEntry) as info:
            explode()
        assert isinstance(info.value.__cause__, ValueError)
        assert str(info.value) == "kaboom"
        assert chainlog.is_caused_by(info.value, ValueError)

    def test_exception_writes_one_record(self):
        @logged
        def explode():
            raise ValueError("kaboom")

        with pytest.raises(LogEntry):
            explode()
        (record,) = _records()
        assert record["Error"] == "kaboom"
        assert record["Level"] == 3
        assert record["Msg"].endswith("explode")

    def test_bound_arguments_are_recorded(self):
        with pytest.raises(LogEntry):
            _fetch_balance(7)
        assert _records()[0]["Args"] == ["user_id=7"]

    def test_defaults_are_applied(self):
        with pytest.raises(LogEntry):
            _pay(1, amount=500)
        assert _records()[-1]["Args"] == ["user_id=1", "amount=500", "currency='EUR'"]

    def test_caller_points_at_failing_line(self):
        with pytest.raises(LogEntry):
            _fetch_balance(7)
        record = _records()[0]
        assert record["Function"].endswith("._fetch_balance")
        assert record["Line"] == _LINES["fetch"]

    def test_wraps_preserves_metadata(self):
        @logged
        def documented():
            """Docstring survives."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring survives."


# ---------------------------------------------------------------------------
# Integration: nested decorated calls
# ---------------------------------------------------------------------------


class TestLoggedChain:
    def test_nested_calls_share_correlation_id(self):
        with pytest.raises(LogEntry) as info:
            _pay(101, 5000)

        inner, outer = _records()
        assert inner["UUID"] == outer["UUID"] == info.value.correlation_id
        assert inner["Error"] == "db unreachable for 101"
        assert "Error" not in outer
        assert outer["Line"] == _LINES["pay"]

    def test_nested_calls_parse_into_one_trace(self):
        with pytest.raises(LogEntry):
            _pay(101, 5000)

        parsed = Parser().from_string(chainlog.captured()).parse()
        (trace,) = parsed.traces
        assert trace.error == "db unreachable for 101"
        assert [f.message for f in trace.frames] == ["_fetch_balance", "_pay"]
