"""test_pipeline.py - Unit and integration tests for emission.

Covers:
    - Severity filtering leaves the sink untouched
    - from_error(None) emission is a silent no-op
    - Chain root carries the error text, continuations suppress it
    - Caller capture: on for errors, off for messages unless enabled
    - with_caller() overrides stack walking
    - A second log() on an emitted entry writes nothing
    - Encode failure (unserialisable or too deeply nested args) writes one
      FATAL fallback line instead of raising
    - emit() returns the entry for ``raise entry.log()``
    - Integration: a four-level call stack produces one correlated chain
    - Concurrent emitters each write exactly one whole line
"""

import json
import sys
import threading

import pytest

import chainlog
from chainlog import Severity
from chainlog.entry import LogEntry, from_error, from_message
from chainlog.pipeline import build_record, capture_caller_location, emit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _records():
    """Decode every captured line."""
    return [json.loads(line) for line in chainlog.captured().splitlines() if line]


_LINES = {}


def _a(s):
    s += "A"
    try:
        _b(s)
    except LogEntry as e:
        _LINES["_a"] = sys._getframe().f_lineno + 1
        raise from_error(e).with_args(s).with_message("A").log() from e


def _b(s):
    s += "B"
    try:
        _c(s)
    except LogEntry as e:
        _LINES["_b"] = sys._getframe().f_lineno + 1
        raise from_error(e).with_args(s).with_message("B").log() from e


def _c(s):
    s += "C"
    try:
        _d(s)
    except LogEntry as e:
        _LINES["_c"] = sys._getframe().f_lineno + 1
        raise from_error(e).with_args(s).with_message("C").log() from e


def _d(s):
    s += "D"
    _LINES["_d"] = sys._getframe().f_lineno + 1
    raise from_error(ValueError("testError")).with_args(s).with_message("D").log()


# ---------------------------------------------------------------------------
# Filtering and no-op rules
# ---------------------------------------------------------------------------


class TestFiltering:
    def test_below_threshold_writes_nothing(self):
        chainlog.from_message("before").log()
        before = chainlog.captured()

        chainlog.set_level(Severity.WARN)
        from_message("info is filtered").log()
        from_message("debug too").with_level(Severity.DEBUG).log()

        assert chainlog.captured() == before

    def test_at_threshold_is_written(self):
        chainlog.set_level(Severity.WARN)
        from_message("warned").with_level(Severity.WARN).log()
        assert len(_records()) == 1

    def test_filtered_entry_is_returned_unchanged(self):
        chainlog.set_level(Severity.FATAL)
        entry = from_error(ValueError("v"))
        assert emit(entry) is entry
        assert entry.emitted is False

    def test_from_error_none_is_noop(self):
        entry = from_error(None).with_message("nothing happened")
        assert entry.log() is entry
        assert chainlog.captured() == ""

    def test_message_entry_without_error_is_written(self):
        entry = from_message("plain").log()
        (record,) = _records()
        assert set(record) == {"UUID", "Date", "Msg", "Level"}
        assert record["UUID"] == entry.correlation_id
        assert record["Msg"] == "plain"
        assert record["Level"] == 1

    def test_second_log_call_writes_nothing(self):
        entry = from_message("once").log()
        assert entry.log() is entry
        assert emit(entry) is entry
        assert len(_records()) == 1


# ---------------------------------------------------------------------------
# Error text suppression
# ---------------------------------------------------------------------------


class TestErrorSuppression:
    def test_root_carries_error_text(self):
        original = ValueError("invalid literal")
        from_error(original).log()
        assert _records()[0]["Error"] == "invalid literal"

    def test_continuation_has_no_error_text(self):
        root = from_error(EOFError("EOF")).log()
        from_error(root).log()
        first, second = _records()
        assert first["Error"] == "EOF"
        assert "Error" not in second
        assert first["UUID"] == second["UUID"]

    def test_foreign_wrapper_around_entry_is_suppressed(self):
        root = from_error(EOFError("EOF")).log()
        outer = RuntimeError("outer")
        outer.__cause__ = root
        from_error(outer).log()
        assert "Error" not in _records()[1]

    def test_build_record_is_pure(self):
        record = build_record(from_error(KeyError("k")).with_args(1))
        assert record.error == "'k'"
        assert record.args == [1]
        assert chainlog.captured() == ""


# ---------------------------------------------------------------------------
# Caller capture
# ---------------------------------------------------------------------------


class TestCallerCapture:
    def test_error_entries_capture_caller(self):
        line = sys._getframe().f_lineno + 1
        from_error(ValueError("v")).log()
        record = _records()[0]
        assert record["Function"].endswith(".test_error_entries_capture_caller")
        assert record["Line"] == line

    def test_message_entries_skip_caller_by_default(self):
        from_message("m").log()
        record = _records()[0]
        assert "Function" not in record
        assert "Line" not in record

    def test_enable_stack_trace_on_message(self):
        line = sys._getframe().f_lineno + 1
        from_message("m").enable_stack_trace().log()
        assert _records()[0]["Line"] == line

    def test_with_caller_overrides_stack_walk(self):
        from_message("m").with_caller("svc.handler", 99).log()
        record = _records()[0]
        assert record["Function"] == "svc.handler"
        assert record["Line"] == 99

    def test_capture_caller_location_outside_package(self):
        line = sys._getframe().f_lineno + 1
        function, lineno = capture_caller_location()
        assert function.endswith(".test_capture_caller_location_outside_package")
        assert lineno == line


# ---------------------------------------------------------------------------
# Encoding failures
# ---------------------------------------------------------------------------


class TestEncodeFallback:
    def test_unserialisable_args_write_fatal_fallback(self):
        entry = from_message("m").with_args(threading.Lock())
        assert entry.log() is entry
        records = _records()
        assert len(records) == 1
        assert records[0]["Level"] == 4
        assert "not JSON serializable" in records[0]["Error"]
        assert records[0]["UUID"] != entry.correlation_id

    def test_fallback_is_logged_as_warning(self, caplog):
        with caplog.at_level("WARNING", logger="chainlog.pipeline"):
            from_message("m").with_args(object()).log()
        assert any("could not encode" in r.getMessage() for r in caplog.records)

    def test_deeply_nested_args_write_fatal_fallback(self):
        nested = []
        for _ in range(100_000):
            nested = [nested]
        entry = from_message("deep").with_args(nested)
        assert entry.log() is entry
        (record,) = _records()
        assert record["Level"] == 4
        assert "recursion" in record["Error"]
        assert entry.emitted is True


# ---------------------------------------------------------------------------
# Integration: a failure propagating through four frames
# ---------------------------------------------------------------------------


class TestIntegrationChain:
    def test_depth_chain_shares_id_and_reports_error_once(self):
        with pytest.raises(LogEntry) as info:
            _a("Init_")
        from_error(info.value).with_args("Init_").log()

        records = _records()
        assert len(records) == 5
        assert len({r["UUID"] for r in records}) == 1
        assert records[0]["Error"] == "testError"
        assert all("Error" not in r for r in records[1:])
        assert [r["Msg"] for r in records[:4]] == ["D", "C", "B", "A"]
        assert [r["Args"] for r in records] == [
            ["Init_ABCD"], ["Init_ABC"], ["Init_AB"], ["Init_A"], ["Init_"],
        ]
        assert [r["Line"] for r in records[:4]] == [
            _LINES["_d"], _LINES["_c"], _LINES["_b"], _LINES["_a"],
        ]
        assert records[0]["Function"].endswith("._d")
        assert all(r["Level"] == 3 for r in records)

    def test_raised_chain_is_still_the_original_failure(self):
        with pytest.raises(LogEntry) as info:
            _a("x")
        assert str(info.value) == "testError"
        assert chainlog.is_caused_by(info.value, ValueError)

    def test_parser_rebuilds_emitted_chain(self):
        with pytest.raises(LogEntry):
            _a("x")
        parsed = chainlog.Parser().from_string(chainlog.captured()).parse()
        assert parsed.entries == []
        assert len(parsed.traces) == 1
        trace = parsed.traces[0]
        assert trace.error == "testError"
        assert [f.message for f in trace.frames] == ["D", "C", "B", "A"]


class TestConcurrentEmission:
    def test_each_emit_writes_one_whole_line(self):
        def worker(n):
            for i in range(100):
                from_message(f"worker {n} line {i}").with_args("x" * 200).log()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = _records()
        assert len(records) == 800
        assert len({r["UUID"] for r in records}) == 800
