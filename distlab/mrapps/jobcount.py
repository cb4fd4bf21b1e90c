"""Counts how many times map tasks run, to catch tasks assigned more than once."""

from __future__ import annotations

import itertools
import os
import random
import time

from distlab.mr.protocol import KeyValue

_MARKER_PREFIX = "mr-worker-jobcount"
_invocations = itertools.count()


def map_func(filename: str, contents: str) -> list[KeyValue]:
    """Leave a marker file for this invocation, then stall for 2 to 5 seconds."""
    marker = f"{_MARKER_PREFIX}-{os.getpid()}-{next(_invocations)}"
    with open(marker, "w") as f:
        f.write("x")
    time.sleep((2000 + random.randrange(3000)) / 1000)
    return [KeyValue("a", "x")]


def reduce_func(key: str, values: list[str]) -> str:
    """Return the number of marker files in the current directory."""
    return str(sum(1 for name in os.listdir(".") if name.startswith(_MARKER_PREFIX)))