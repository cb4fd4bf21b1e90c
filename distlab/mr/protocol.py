"""Messages exchanged between MapReduce workers and the coordinator."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF


@dataclass(frozen=True)
class KeyValue:
    """One key/value pair emitted by a map function."""

    key: str
    value: str


class TaskType(str, enum.Enum):
    """Kind of work the coordinator hands to a worker."""

    MAP = "map"
    REDUCE = "reduce"
    WAIT = "wait"
    DONE = "done"


@dataclass
class WorkerRequest:
    """Sent by a worker when it asks for or reports on a task."""

    file_name: str = ""
    reduce_id: int = 0
    distributed_time: int = 0


@dataclass
class WorkerReply:
    """The coordinator's answer to a worker."""

    task_type: TaskType = TaskType.WAIT
    file: str = ""
    n_reduce: int = 0
    task_id: int = 0
    n_map: int = 0
    distributed_time: int = 0


def _fnv1a32(data: bytes) -> int:
    h = _FNV32_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV32_PRIME) & _MASK32
    return h


def ihash(key: str) -> int:
    """Non-negative 31-bit FNV-1a hash of a key, used to pick a reduce bucket."""
    return _fnv1a32(key.encode("utf-8")) & 0x7FFFFFFF


def coordinator_sock() -> str:
    """Path of the coordinator's UNIX-domain socket for the current user."""
    return f"/var/tmp/5840-mr-{os.getuid()}"