from distlab.persister import Persister


def test_new_persister_is_empty():
    p = Persister()
    assert p.read_raft_state() == b""
    assert p.read_snapshot() == b""
    assert p.raft_state_size() == 0
    assert p.snapshot_size() == 0


def test_save_and_read_back():
    p = Persister()
    p.save(b"raft-state", b"snap")
    assert p.read_raft_state() == b"raft-state"
    assert p.read_snapshot() == b"snap"
    assert p.raft_state_size() == len(b"raft-state")
    assert p.snapshot_size() == len(b"snap")


def test_save_replaces_both_parts():
    p = Persister()
    p.save(b"one", b"two")
    p.save(b"three", b"")
    assert p.read_raft_state() == b"three"
    assert p.read_snapshot() == b""


def test_save_none_snapshot_means_empty():
    p = Persister()
    p.save(b"state", None)
    assert p.read_snapshot() == b""
    assert p.snapshot_size() == 0


def test_saved_data_is_independent_of_caller_buffer():
    p = Persister()
    buf = bytearray(b"abc")
    p.save(buf, buf)
    buf[0] = ord("z")
    assert p.read_raft_state() == b"abc"
    assert p.read_snapshot() == b"abc"


def test_copy_keeps_state_and_is_independent():
    p = Persister()
    p.save(b"old-state", b"old-snap")
    q = p.copy()
    assert q.read_raft_state() == b"old-state"
    assert q.read_snapshot() == b"old-snap"
    p.save(b"new-state", b"new-snap")
    assert q.read_raft_state() == b"old-state"
    assert q.read_snapshot() == b"old-snap"
    q.save(b"q", b"q")
    assert p.read_raft_state() == b"new-state"