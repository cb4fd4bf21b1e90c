"""The interface a Raft peer offers, and the messages it delivers when entries commit."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any


class Raft(abc.ABC):
    """A Raft peer as seen by the service built on top of it."""

    @abc.abstractmethod
    def start(self, command: Any) -> tuple[int, int, bool]:
        """Begin agreement on a command; return (index, term, is_leader)."""

    @abc.abstractmethod
    def get_state(self) -> tuple[int, bool]:
        """Return (current term, whether this peer believes it is leader)."""

    @abc.abstractmethod
    def snapshot(self, index: int, snapshot: bytes) -> None:
        """Tell the peer that state up to and including index is in snapshot."""

    @abc.abstractmethod
    def persist_bytes(self) -> int:
        """Size in bytes of the persisted Raft state."""

    @abc.abstractmethod
    def kill(self) -> None:
        """Stop any long-running work."""


@dataclass
class ApplyMsg:
    """A committed log entry or an installed snapshot, delivered to the service."""

    command_valid: bool = False
    command: Any = None
    command_index: int = 0

    snapshot_valid: bool = False
    snapshot: bytes = b""
    snapshot_term: int = 0
    snapshot_index: int = 0