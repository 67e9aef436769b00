"""examples/basic_usage.py - chainlog integration demo.

Demonstrates two usage levels:
    Scenario A, explicit chains: from_error(...).log() at every stack level
    Scenario B, @logged: the decorator records a frame per function
Both scenarios write JSON lines to stderr that share one UUID per failure.
"""

import chainlog
from chainlog import Severity, from_error, from_message, logged

# ---------------------------------------------------------------------------
# Process-wide settings (these are the defaults, spelled out)
# ---------------------------------------------------------------------------
chainlog.set_level(Severity.DEBUG)
chainlog.set_output(chainlog.Output.STDERR)


# ===========================================================================
# Scenario A: explicit chains
# ===========================================================================


def get_balance(user_id: int) -> int:
    """Simulate a DB balance query that fails."""
    try:
        raise TimeoutError("db read timed out")
    except TimeoutError as exc:
        raise from_error(exc).with_args(user_id).with_message("balance lookup").log() from exc


def pay(user_id: int, amount: int) -> None:
    """Simulate a payment flow that adds context as the error passes through."""
    from_message("payment attempt").with_args(user_id, amount).log()
    try:
        get_balance(user_id)
    except chainlog.LogEntry as exc:
        # Same UUID as the inner record, no duplicated "Error" text.
        raise from_error(exc).with_args(user_id, amount).with_message("payment failed").log() from exc


# ===========================================================================
# Scenario B: @logged
# ===========================================================================


@logged
def get_balance_decorated(user_id: int) -> int:
    raise TimeoutError("db read timed out")


@logged
def pay_decorated(user_id: int, amount: int) -> None:
    if get_balance_decorated(user_id) < amount:
        raise ValueError("insufficient funds")


# ---------------------------------------------------------------------------
# Run both scenarios
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print("=" * 60)
    print("Scenario A: explicit from_error(...).log() chain")
    print("=" * 60)
    try:
        pay(user_id=101, amount=5_000)
    except chainlog.LogEntry as exc:
        print(f"caught: {exc!r} caused by timeout={chainlog.is_caused_by(exc, TimeoutError)}")

    print()
    print("=" * 60)
    print("Scenario B: @logged")
    print("=" * 60)
    try:
        pay_decorated(user_id=202, amount=5_000)
    except chainlog.LogEntry as exc:
        print(f"caught: {exc!r}")
