"""examples/logging_handler_usage.py - Feed standard logging into chainlog.

Shows ChainLogHandler attached to an existing ``logging`` setup, and a custom
Sink that collects records in memory (handy in integration tests).

Run:
    python examples/logging_handler_usage.py
"""

import logging
from typing import List

import chainlog
from chainlog import ChainLogHandler, Sink, from_error


# ---------------------------------------------------------------------------
# Custom sink: collect lines for inspection
# ---------------------------------------------------------------------------


class ListSink(Sink):
    """Stores every emitted line in a list.

    Attributes:
        lines: Serialised records, oldest first.
    """

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write(self, line: str) -> None:
        self.lines.append(line)


sink = ListSink()
chainlog.set_output(sink)

# ---------------------------------------------------------------------------
# Standard logger setup with one extra handler
# ---------------------------------------------------------------------------
logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
logging.getLogger().addHandler(ChainLogHandler())
logger = logging.getLogger("payment_service")


def load_card(user_id: int) -> str:
    try:
        raise KeyError(f"no card on file for {user_id}")
    except KeyError as exc:
        raise from_error(exc).with_args(user_id).log() from exc


if __name__ == "__main__":
    logger.info("payment started", extra={"chain_args": [42]})
    try:
        load_card(42)
    except chainlog.LogEntry:
        # Joins the chain started inside load_card().
        logger.exception("payment failed")

    print()
    print("--- lines collected by ListSink ---")
    for line in sink.lines:
        print(line)

    parsed = chainlog.Parser().from_lines(sink.lines).parse()
    print(f"--- {len(parsed.entries)} entries, {len(parsed.traces)} trace(s) ---")
