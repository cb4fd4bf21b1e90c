"""The MapReduce worker: asks the coordinator for tasks and runs them."""

from __future__ import annotations

import json
import logging
import os
import socket
import tempfile
import time
from dataclasses import asdict
from itertools import groupby
from operator import attrgetter
from typing import Callable

from distlab.mr.coordinator import ASSIGN_TASK, TASK_FINISHED
from distlab.mr.protocol import (
    KeyValue,
    TaskType,
    WorkerReply,
    WorkerRequest,
    coordinator_sock,
    ihash,
)

log = logging.getLogger(__name__)

INTERMEDIATE_DIR = "intermediate"
_POLL_INTERVAL = 1.0

MapFunc = Callable[[str, str], "list[KeyValue]"]
ReduceFunc = Callable[[str, "list[str]"], str]


def _intermediate_name(map_id: int, reduce_id: int) -> str:
    return os.path.join(INTERMEDIATE_DIR, f"mr-{map_id}-{reduce_id}")


def worker(mapf: MapFunc, reducef: ReduceFunc) -> None:
    """Ask for tasks and run them until the coordinator is gone or the job is done."""
    while True:
        try:
            reply = call_get_task()
        except OSError:
            log.info("Coordinator Missed!")
            return

        if reply.task_type is TaskType.MAP:
            try:
                do_map(reply, mapf)
            except (OSError, ValueError) as exc:
                log.warning("Map Task Failed, FileName: %s: %s", reply.file, exc)
                continue
            report = WorkerRequest(file_name=reply.file, distributed_time=reply.distributed_time)
            try:
                call_task_finished(report)
            except OSError:
                time.sleep(_POLL_INTERVAL)
                continue
        elif reply.task_type is TaskType.REDUCE:
            try:
                do_reduce(reply, reducef)
            except (OSError, ValueError) as exc:
                log.warning("Reduce Task Failed, ReduceID: %d: %s", reply.task_id, exc)
                continue
            report = WorkerRequest(reduce_id=reply.task_id, distributed_time=reply.distributed_time)
            try:
                call_task_finished(report)
            except OSError:
                time.sleep(_POLL_INTERVAL)
                continue
        elif reply.task_type is TaskType.DONE:
            return

        time.sleep(_POLL_INTERVAL)


def _reply_from(data: dict) -> WorkerReply:
    return WorkerReply(
        task_type=TaskType(data.get("task_type", TaskType.WAIT.value)),
        file=data.get("file", ""),
        n_reduce=data.get("n_reduce", 0),
        task_id=data.get("task_id", 0),
        n_map=data.get("n_map", 0),
        distributed_time=data.get("distributed_time", 0),
    )


def call(method: str, request: WorkerRequest) -> WorkerReply:
    """Send one call to the coordinator and return its reply; raise OSError on failure."""
    payload = json.dumps({"method": method, "args": asdict(request)}).encode("utf-8") + b"\n"
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.connect(coordinator_sock())
            sock.sendall(payload)
            with sock.makefile("rb") as stream:
                line = stream.readline()
    except OSError as exc:
        log.info("dialing %s", exc)
        raise
    if not line:
        raise ConnectionError(f"calling {method}: connection closed")
    try:
        response = json.loads(line)
    except ValueError as exc:
        raise ConnectionError(f"calling {method}: bad response: {exc}") from exc
    if "error" in response:
        raise ConnectionError(f"calling {method}: {response['error']}")
    return _reply_from(response.get("reply") or {})


def call_get_task() -> WorkerReply:
    """Ask the coordinator for a task."""
    return call(ASSIGN_TASK, WorkerRequest())


def call_task_finished(request: WorkerRequest) -> None:
    """Tell the coordinator a task is finished."""
    call(TASK_FINISHED, request)


def do_map(reply: WorkerReply, mapf: MapFunc) -> None:
    """Map one input file and write its output split into reply.n_reduce intermediate files."""
    with open(reply.file, encoding="utf-8", errors="replace") as f:
        content = f.read()

    buckets: list[list[KeyValue]] = [[] for _ in range(reply.n_reduce)]
    for kv in mapf(reply.file, content):
        buckets[ihash(kv.key) % reply.n_reduce].append(kv)

    os.makedirs(INTERMEDIATE_DIR, exist_ok=True)
    for reduce_id, bucket in enumerate(buckets):
        with tempfile.NamedTemporaryFile(
            "w", dir=INTERMEDIATE_DIR, prefix="mr-map-temp", delete=False, encoding="utf-8"
        ) as tmp:
            try:
                for kv in bucket:
                    tmp.write(json.dumps({"Key": kv.key, "Value": kv.value}) + "\n")
            except BaseException:
                tmp.close()
                os.unlink(tmp.name)
                raise
        os.replace(tmp.name, _intermediate_name(reply.task_id, reduce_id))


def _read_intermediate(path: str) -> list[KeyValue]:
    with open(path, encoding="utf-8") as f:
        records = [json.loads(line) for line in f if line.strip()]
    return [KeyValue(record["Key"], record["Value"]) for record in records]


def do_reduce(reply: WorkerReply, reducef: ReduceFunc) -> None:
    """Reduce one bucket from every map task's output and write mr-out-<id>."""
    intermediate: list[KeyValue] = []
    for map_id in range(reply.n_map):
        intermediate.extend(_read_intermediate(_intermediate_name(map_id, reply.task_id)))
    intermediate.sort(key=attrgetter("key"))

    with tempfile.NamedTemporaryFile(
        "w", dir=".", prefix="mr-reduce-temp", delete=False, encoding="utf-8"
    ) as tmp:
        try:
            for key, group in groupby(intermediate, key=attrgetter("key")):
                output = reducef(key, [kv.value for kv in group])
                tmp.write(f"{key} {output}\n")
        except BaseException:
            tmp.close()
            os.unlink(tmp.name)
            raise
    os.replace(tmp.name, f"mr-out-{reply.task_id}")