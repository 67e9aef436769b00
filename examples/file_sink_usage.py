"""examples/file_sink_usage.py - Write records to a file and parse them back.

Demonstrates replacing the default stderr output with a FileSink, then
reading the file with the Parser, optionally keeping only records written
after a cutoff.

Run:
    python examples/file_sink_usage.py
    cat /tmp/chainlog_demo/chain.log
"""

import os
from datetime import datetime, timezone

import chainlog
from chainlog import FileSink, Parser, from_error, from_message

# ---------------------------------------------------------------------------
# Setup: swap stderr for a file
# ---------------------------------------------------------------------------
LOG_FILE = "/tmp/chainlog_demo/chain.log"

chainlog.set_output(FileSink(LOG_FILE))


# ---------------------------------------------------------------------------
# Business logic
# ---------------------------------------------------------------------------


def authorize(user_id: int, amount: int) -> None:
    """Reject amounts above the daily limit."""
    if amount > 10_000:
        raise from_error(PermissionError("daily limit exceeded")).with_args(user_id, amount).log()


def charge(user_id: int, amount: int) -> dict:
    """Charge the user and return a receipt (simulated)."""
    from_message("charging").with_args(user_id, amount).log()
    try:
        authorize(user_id, amount)
    except chainlog.LogEntry as exc:
        raise from_error(exc).with_message("charge refused").log() from exc
    return {"status": "ok", "user_id": user_id, "charged": amount}


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print(f"Records will be appended to: {LOG_FILE}")
    started = datetime.now(timezone.utc)

    print(f"[OK] Receipt: {charge(user_id=1, amount=500)}")
    try:
        charge(user_id=2, amount=50_000)
    except chainlog.LogEntry as exc:
        print(f"[FAIL] Caught: {exc}")

    if os.path.exists(LOG_FILE):
        parsed = Parser().from_file(LOG_FILE).after(started).parse()
        print(f"--- records from this run: {len(parsed.entries)} entries ---")
        for entry in parsed.entries:
            print(f"    {entry.timestamp}  {entry.message}  {entry.args}")
        for trace in parsed.traces:
            print(f"--- trace {trace.correlation_id}: {trace.error} ---")
            for frame in trace.frames:
                print(f"    {frame.function}:{frame.line}  {frame.message}")
