"""examples/multithreaded_usage.py - Thread and task isolation demo.

Each thread (and each asyncio task) keeps its own nest level. Whenever the
trace switches from one to another a boundary banner is printed, and lines
of one rendering are never interleaved with another thread's output.

Run:
    python examples/multithreaded_usage.py
"""

import asyncio
import threading
import time

import debugtrace
from debugtrace import trace


@trace
def fetch_inventory(product_id: int) -> int:
    time.sleep(0.01)  # simulate DB latency
    stock = {1: 10, 2: 0, 3: 5}
    return debugtrace.print("stock", stock.get(product_id, 0))


@trace
def place_order(order_id: int, product_id: int, qty: int) -> dict:
    stock = fetch_inventory(product_id)
    if stock < qty:
        raise RuntimeError(f"OutOfStock: product_id={product_id}")
    return debugtrace.print("order", {"order_id": order_id, "status": "confirmed"})


def worker(order_id: int, product_id: int, qty: int) -> None:
    try:
        place_order(order_id=order_id, product_id=product_id, qty=qty)
    except RuntimeError:
        debugtrace.print("order rejected")


@trace
async def notify(channel: str) -> None:
    await asyncio.sleep(0.01)
    debugtrace.print("channel", channel)


async def notify_all() -> None:
    await asyncio.gather(notify("mail"), notify("sms"))


if __name__ == "__main__":
    threads = [
        threading.Thread(target=worker, args=(1001, 1, 3), name="Thread-A"),
        threading.Thread(target=worker, args=(1002, 2, 1), name="Thread-B"),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    asyncio.run(notify_all())
