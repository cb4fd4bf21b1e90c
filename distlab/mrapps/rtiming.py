"""Measures how concurrently reduce tasks run, to check that reduces run in parallel."""

from __future__ import annotations

import os
import re
import time
from pathlib import Path

from distlab.mr.protocol import KeyValue

__all__ = ["map_func", "nparallel", "reduce_func"]


def _is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def nparallel(phase: str) -> int:
    """Count live workers currently in ``phase``, this one included.

    Each caller leaves a marker file named after its pid in the current
    directory for a second, so that workers running at the same time see
    one another.
    """
    marker = Path(f"mr-worker-{phase}-{os.getpid()}")
    marker.write_text("x")

    pattern = re.compile(rf"mr-worker-{re.escape(phase)}-([+-]?\d+)")
    running = 0
    for name in os.listdir("."):
        match = pattern.match(name)
        if match and _is_alive(int(match.group(1))):
            running += 1

    time.sleep(1)
    marker.unlink()
    return running


def map_func(filename: str, contents: str) -> list[KeyValue]:
    """Emit ten fixed keys, a through j, so there is work for many reduce tasks."""
    return [KeyValue(key, "1") for key in "abcdefghij"]


def reduce_func(key: str, values: list[str]) -> str:
    """Return how many reduce workers were seen running at the same time."""
    return str(nparallel("reduce"))