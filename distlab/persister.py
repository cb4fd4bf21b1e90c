"""Storage for Raft state and service snapshots that survives a simulated restart."""

from __future__ import annotations

import threading


class Persister:
    """Holds Raft state and a snapshot, saved together atomically."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._raftstate = b""
        self._snapshot = b""

    def copy(self) -> Persister:
        """Return a new persister holding the same saved state."""
        with self._lock:
            other = Persister()
            other._raftstate = self._raftstate
            other._snapshot = self._snapshot
            return other

    def read_raft_state(self) -> bytes:
        with self._lock:
            return self._raftstate

    def raft_state_size(self) -> int:
        with self._lock:
            return len(self._raftstate)

    def save(self, raftstate: bytes, snapshot: bytes) -> None:
        """Save Raft state and snapshot as one atomic action."""
        state = bytes(raftstate) if raftstate is not None else b""
        snap = bytes(snapshot) if snapshot is not None else b""
        with self._lock:
            self._raftstate = state
            self._snapshot = snap

    def read_snapshot(self) -> bytes:
        with self._lock:
            return self._snapshot

    def snapshot_size(self) -> int:
        with self._lock:
            return len(self._snapshot)