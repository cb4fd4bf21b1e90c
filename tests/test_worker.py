import json
import os
import threading

import pytest

from distlab.mr.coordinator import make_coordinator
from distlab.mr.protocol import KeyValue, TaskType, WorkerReply, WorkerRequest, ihash
from distlab.mr.worker import (
    INTERMEDIATE_DIR,
    call_get_task,
    call_task_finished,
    do_map,
    do_reduce,
    worker,
)


def word_map(filename, contents):
    return [KeyValue(w, "1") for w in contents.split()]


def count_reduce(key, values):
    return str(len(values))


def source_map(filename, contents):
    return [KeyValue(w, filename) for w in contents.split()]


def join_reduce(key, values):
    return " ".join(sorted(values))


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def read_pairs(path):
    return [KeyValue(*line.split(" ", 1)) for line in path.read_text().splitlines()]


def read_outputs(directory, n_reduce):
    result = {}
    for i in range(n_reduce):
        for kv in read_pairs(directory / f"mr-out-{i}"):
            result[kv.key] = kv.value
    return result


def test_do_map_partitions_by_hash(workdir):
    text = "alpha beta gamma alpha"
    (workdir / "in.txt").write_text(text)
    do_map(WorkerReply(task_type=TaskType.MAP, file="in.txt", n_reduce=3, task_id=7), word_map)
    seen = []
    for i in range(3):
        path = workdir / INTERMEDIATE_DIR / f"mr-7-{i}"
        records = [json.loads(line) for line in path.read_text().splitlines()]
        for record in records:
            assert set(record) == {"Key", "Value"}
            assert ihash(record["Key"]) % 3 == i
        seen.extend(record["Key"] for record in records)
    assert sorted(seen) == sorted(text.split())


def test_map_then_reduce_counts(workdir):
    (workdir / "in.txt").write_text("x y x")
    do_map(WorkerReply(task_type=TaskType.MAP, file="in.txt", n_reduce=2, task_id=0), word_map)
    for i in range(2):
        do_reduce(WorkerReply(task_type=TaskType.REDUCE, task_id=i, n_map=1), count_reduce)
    assert read_outputs(workdir, 2) == {"x": "2", "y": "1"}
    for key in ("x", "y"):
        bucket = read_pairs(workdir / f"mr-out-{ihash(key) % 2}")
        assert key in [kv.key for kv in bucket]


def test_reduce_merges_across_maps(workdir):
    (workdir / "f1").write_text("k only1")
    (workdir / "f2").write_text("k")
    do_map(WorkerReply(task_type=TaskType.MAP, file="f1", n_reduce=1, task_id=0), source_map)
    do_map(WorkerReply(task_type=TaskType.MAP, file="f2", n_reduce=1, task_id=1), source_map)
    do_reduce(WorkerReply(task_type=TaskType.REDUCE, task_id=0, n_map=2), join_reduce)
    assert read_pairs(workdir / "mr-out-0") == [
        KeyValue("k", "f1 f2"),
        KeyValue("only1", "f1"),
    ]


def test_reduce_output_sorted_by_key(workdir):
    (workdir / "in.txt").write_text("pear apple zebra mango apple kiwi")
    do_map(WorkerReply(task_type=TaskType.MAP, file="in.txt", n_reduce=1, task_id=0), word_map)
    do_reduce(WorkerReply(task_type=TaskType.REDUCE, task_id=0, n_map=1), count_reduce)
    assert read_pairs(workdir / "mr-out-0") == [
        KeyValue("apple", "2"),
        KeyValue("kiwi", "1"),
        KeyValue("mango", "1"),
        KeyValue("pear", "1"),
        KeyValue("zebra", "1"),
    ]


def test_do_map_missing_file_raises(workdir):
    with pytest.raises(FileNotFoundError):
        do_map(WorkerReply(task_type=TaskType.MAP, file="absent.txt", n_reduce=1), word_map)


def test_do_reduce_missing_intermediate_raises(workdir):
    with pytest.raises(FileNotFoundError):
        do_reduce(WorkerReply(task_type=TaskType.REDUCE, task_id=0, n_map=1), count_reduce)
    assert not (workdir / "mr-out-0").exists()


def test_calls_against_live_coordinator(workdir):
    coordinator = make_coordinator(["a.txt", "b.txt"], 1)
    try:
        reply = call_get_task()
        assert reply.task_type is TaskType.MAP
        assert reply.file == "a.txt"
        assert reply.n_reduce == 1
        call_task_finished(
            WorkerRequest(file_name=reply.file, distributed_time=reply.distributed_time)
        )
        second = call_get_task()
        assert second.file == "b.txt"
        assert second.task_id == 1
    finally:
        coordinator.close()


def test_worker_runs_whole_job(workdir):
    (workdir / "a.txt").write_text("red blue red")
    (workdir / "b.txt").write_text("blue green")
    coordinator = make_coordinator(["a.txt", "b.txt"], 2)
    coordinator.done_grace = 0
    try:
        thread = threading.Thread(target=worker, args=(source_map, join_reduce), daemon=True)
        thread.start()
        thread.join(timeout=60)
        assert not thread.is_alive()
        assert coordinator.done() is True
    finally:
        coordinator.close()
    assert read_outputs(workdir, 2) == {
        "red": "a.txt a.txt",
        "blue": "a.txt b.txt",
        "green": "b.txt",
    }
    assert not any(name.startswith("mr-reduce-temp") for name in os.listdir(workdir))