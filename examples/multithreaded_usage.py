"""examples/multithreaded_usage.py - Concurrent chains sharing one sink.

Several worker threads fail at the same time and all write into the in-memory
buffer, so their lines interleave. The Parser then separates them again: one
trace per failure, each with its frames in chronological order and its error
text stated once.

Run:
    python examples/multithreaded_usage.py
"""

import threading
import time

import chainlog
from chainlog import from_error, from_message

# ---------------------------------------------------------------------------
# Setup: capture everything in memory so it can be parsed afterwards
# ---------------------------------------------------------------------------
chainlog.set_output(chainlog.Output.MEMORY)


# ---------------------------------------------------------------------------
# Business logic
# ---------------------------------------------------------------------------


def fetch_inventory(product_id: int) -> int:
    """Simulate a DB read for product stock."""
    time.sleep(0.01)  # simulate DB latency
    stock = {1: 10, 2: 0, 3: 5}
    if stock.get(product_id, 0) == 0:
        raise from_error(LookupError(f"out of stock: {product_id}")).with_args(product_id).log()
    return stock[product_id]


def place_order(order_id: int, product_id: int, qty: int) -> dict:
    """Attempt to place an order for the given product and quantity."""
    from_message("order received").with_args(order_id, product_id, qty).log()
    try:
        fetch_inventory(product_id)
    except chainlog.LogEntry as exc:
        time.sleep(0.005)
        raise from_error(exc).with_args(order_id).with_message("order rejected").log() from exc
    return {"order_id": order_id, "status": "confirmed"}


def worker(order_id: int, product_id: int, qty: int) -> None:
    """Worker function representing a single request handler."""
    try:
        place_order(order_id, product_id, qty)
    except chainlog.LogEntry:
        pass


if __name__ == "__main__":
    orders = [(1001, 1, 3), (1002, 2, 1), (1003, 4, 1), (1004, 3, 2)]
    threads = [
        threading.Thread(target=worker, args=order, name=f"order-{order[0]}")
        for order in orders
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    print("--- raw interleaved output ---")
    print(chainlog.captured())

    parsed = chainlog.Parser().from_string(chainlog.captured()).parse()
    print(f"--- {len(parsed.entries)} standalone entries, {len(parsed.traces)} traces ---")
    for trace in parsed.traces:
        print(f"trace {trace.correlation_id}: {trace.error}")
        for frame in trace.frames:
            print(f"    {frame.timestamp}  {frame.function}:{frame.line}  {frame.message}  {frame.args}")
