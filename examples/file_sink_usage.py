"""examples/file_sink_usage.py - Write the trace to a file instead of stderr.

The same result can be had without code by putting this in debugtrace.yml::

    logger: file
    log_path: +/tmp/debugtrace_demo/trace.log

A leading ``+`` appends to the file; without it the file is truncated when
the sink is created.

Run:
    python examples/file_sink_usage.py
    cat /tmp/debugtrace_demo/trace.log
"""

import os

import debugtrace
from debugtrace import Config, FileSink, trace

LOG_DIR = "/tmp/debugtrace_demo"
LOG_FILE = os.path.join(LOG_DIR, "trace.log")

os.makedirs(LOG_DIR, exist_ok=True)
debugtrace.configure(
    config=Config(maximum_data_output_width=60),
    sink=FileSink(LOG_FILE),
)


@trace
def authorize(user_id: int, amount: int) -> bool:
    debugtrace.print("limit", 10_000)
    return amount <= 10_000


@trace
def charge(user_id: int, amount: int) -> dict:
    if not authorize(user_id, amount):
        raise PermissionError(f"DailyLimitExceeded: user_id={user_id}")
    receipt = {"status": "ok", "user_id": user_id, "charged": amount}
    return debugtrace.print("receipt", receipt)


if __name__ == "__main__":
    charge(user_id=1, amount=500)
    try:
        charge(user_id=2, amount=50_000)
    except PermissionError:
        pass

    with open(LOG_FILE, encoding="utf-8") as f:
        print(f.read())
