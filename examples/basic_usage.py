"""examples/basic_usage.py - DebugTrace integration demo.

Demonstrates three ways of producing a trace:
    Scenario A - explicit enter() / print() / leave() calls
    Scenario B - the @trace decorator, including a raised exception
    Scenario C - existing logging calls routed through DebugTraceHandler

Run:
    python examples/basic_usage.py

Output goes to stderr unless a ./debugtrace.yml selects another logger.
"""

import datetime
import logging
from dataclasses import dataclass

import debugtrace
from debugtrace import DebugTraceHandler, trace

logger = logging.getLogger("app")
logger.setLevel(logging.DEBUG)
logger.addHandler(DebugTraceHandler())


@dataclass
class Contact:
    id: int
    first_name: str
    last_name: str
    birthday: datetime.date


# ===========================================================================
# Scenario A: explicit calls
# ===========================================================================


def func2(contacts):
    debugtrace.enter()
    debugtrace.print("contacts", contacts)
    debugtrace.print("payload", b"\x00\x01DebugTrace-py\xff", as_bytes=True)
    debugtrace.leave()


def func1():
    debugtrace.enter()
    debugtrace.print("Hello, World!")
    func2([
        Contact(1, "Akane", "Apple", datetime.date(1991, 2, 3)),
        Contact(2, "Yukari", "Apple", datetime.date(1992, 3, 4)),
    ])
    debugtrace.leave()


# ===========================================================================
# Scenario B: @trace
# ===========================================================================


@trace
def get_balance(user_id: int) -> int:
    return debugtrace.print("balance", 3_000)


@trace
def pay(user_id: int, amount: int) -> None:
    balance = get_balance(user_id)
    if balance < amount:
        raise ValueError(f"InsufficientFunds: balance={balance}, amount={amount}")


# ===========================================================================
# Scenario C: logging through DebugTraceHandler
# ===========================================================================


@trace
def checkout(cart):
    logger.info("checking out %d items", len(cart))
    debugtrace.print("cart", cart)
    logger.warning("coupon expired")


if __name__ == "__main__":
    func1()

    try:
        pay(user_id=101, amount=5_000)
    except ValueError:
        pass

    checkout({"apple": 3, "banana": 12})
