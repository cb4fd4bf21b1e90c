"""Counts each input file once; some reduces are slow, to catch workers that quit early."""

from __future__ import annotations

import time

from distlab.mr.protocol import KeyValue

SLOW_REDUCE_SECONDS = 3


def map_func(filename: str, contents: str) -> list[KeyValue]:
    """Emit (filename, "1") once per input file."""
    return [KeyValue(filename, "1")]


def reduce_func(key: str, values: list[str]) -> str:
    """Return the number of values, sleeping first for keys naming sherlock or tom."""
    if "sherlock" in key or "tom" in key:
        time.sleep(SLOW_REDUCE_SECONDS)
    return str(len(values))