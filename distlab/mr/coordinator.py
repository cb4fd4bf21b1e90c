"""The MapReduce coordinator: hands out map and reduce tasks and tracks their progress."""

from __future__ import annotations

import contextlib
import enum
import json
import logging
import os
import socketserver
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, fields
from typing import Any, Iterable, Union

from distlab.mr.protocol import TaskType, WorkerReply, WorkerRequest, coordinator_sock

log = logging.getLogger(__name__)

TIMEOUT = 10
"""Seconds after which an assigned task is considered lost and handed out again."""

ASSIGN_TASK = "Coordinator.AssignTask"
TASK_FINISHED = "Coordinator.TaskFin"

_REQUEST_FIELDS = tuple(f.name for f in fields(WorkerRequest))


class Phase(enum.IntEnum):
    """Stage of the whole job."""

    MAP = 0
    REDUCE = 1
    DONE = 2


@dataclass
class MapTask:
    """One input file to be mapped."""

    file_name: str
    map_id: int
    start_time: int = -1


@dataclass
class ReduceTask:
    """One reduce bucket to be reduced."""

    reduce_id: int
    start_time: int = -1


_Task = Union[MapTask, ReduceTask]


class Coordinator:
    """Keeps the queues of pending tasks and the set of tasks handed to workers."""

    def __init__(self, files: Iterable[str], n_reduce: int) -> None:
        files = list(files)
        self._lock = threading.Lock()
        self._map_tasks: deque[MapTask] = deque(
            MapTask(file_name=name, map_id=i) for i, name in enumerate(files)
        )
        self._reduce_tasks: deque[ReduceTask] = deque()
        self._assigned: dict[Any, _Task] = {}
        self._phase = Phase.MAP
        self._finished = 0
        self.n_map = len(files)
        self.n_reduce = n_reduce
        self.done_grace = 2.0
        self._server: socketserver.BaseServer | None = None
        self._socket_path: str | None = None

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self._phase

    def _requeue_expired(self, queue: deque, now: int) -> None:
        expired = [key for key, task in self._assigned.items() if now - task.start_time > TIMEOUT]
        for key in expired:
            queue.append(self._assigned.pop(key))

    def assign_task(self, request: WorkerRequest) -> WorkerReply:
        """Give the asking worker a task, tell it to wait, or tell it the job is done."""
        now = int(time.time())
        with self._lock:
            if self._phase is Phase.MAP:
                self._requeue_expired(self._map_tasks, now)
                if not self._map_tasks:
                    return WorkerReply(task_type=TaskType.WAIT)
                map_task = self._map_tasks.popleft()
                map_task.start_time = now
                self._assigned[map_task.file_name] = map_task
                return WorkerReply(
                    task_type=TaskType.MAP,
                    file=map_task.file_name,
                    n_reduce=self.n_reduce,
                    task_id=map_task.map_id,
                    distributed_time=now,
                )
            if self._phase is Phase.REDUCE:
                self._requeue_expired(self._reduce_tasks, now)
                if not self._reduce_tasks:
                    return WorkerReply(task_type=TaskType.WAIT)
                reduce_task = self._reduce_tasks.popleft()
                reduce_task.start_time = now
                self._assigned[reduce_task.reduce_id] = reduce_task
                return WorkerReply(
                    task_type=TaskType.REDUCE,
                    task_id=reduce_task.reduce_id,
                    n_map=self.n_map,
                    distributed_time=now,
                )
            return WorkerReply(task_type=TaskType.DONE)

    def task_finished(self, request: WorkerRequest) -> bool:
        """Record a worker's report; return True if it was accepted as the task's completion."""
        now = int(time.time())
        with self._lock:
            if self._phase is Phase.MAP:
                key: Any = request.file_name
            elif self._phase is Phase.REDUCE:
                key = request.reduce_id
            else:
                return False

            task = self._assigned.get(key)
            if (
                task is None
                or task.start_time != request.distributed_time
                or now - task.start_time > TIMEOUT
            ):
                return False

            del self._assigned[key]
            self._finished += 1

            if self._phase is Phase.MAP:
                if self._finished == self.n_map and not self._reduce_tasks:
                    self._reduce_tasks.extend(ReduceTask(reduce_id=i) for i in range(self.n_reduce))
                    self._phase = Phase.REDUCE
                    self._finished = 0
            elif self._finished == self.n_reduce:
                self._phase = Phase.DONE
            return True

    def _dispatch(self, method: str, args: dict) -> WorkerReply:
        request = WorkerRequest(**{name: args[name] for name in _REQUEST_FIELDS if name in args})
        if method == ASSIGN_TASK:
            return self.assign_task(request)
        if method == TASK_FINISHED:
            self.task_finished(request)
            return WorkerReply()
        raise ValueError(f"unknown method {method!r}")

    def serve(self, address: str | os.PathLike | None = None) -> None:
        """Start answering worker calls on a UNIX-domain socket in a background thread."""
        path = os.fspath(address) if address is not None else coordinator_sock()
        with contextlib.suppress(FileNotFoundError):
            os.remove(path)
        server = _RPCServer(path, _RPCHandler)
        server.coordinator = self
        self._server = server
        self._socket_path = path
        threading.Thread(target=server.serve_forever, daemon=True).start()

    def done(self) -> bool:
        """True once every reduce task has finished."""
        if self.phase is not Phase.DONE:
            return False
        # Keep answering for a while so every worker hears that the job is done.
        time.sleep(self.done_grace)
        return True

    def close(self) -> None:
        """Stop the server, if one is running, and remove its socket."""
        server, self._server = self._server, None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if self._socket_path is not None:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self._socket_path)
            self._socket_path = None

    def __enter__(self) -> Coordinator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class _RPCServer(socketserver.ThreadingUnixStreamServer):
    daemon_threads = True
    coordinator: Coordinator


class _RPCHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        line = self.rfile.readline()
        try:
            message = json.loads(line)
            reply = self.server.coordinator._dispatch(message["method"], message.get("args") or {})
            response: dict = {"reply": asdict(reply)}
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("bad call: %s", exc)
            response = {"error": str(exc)}
        self.wfile.write(json.dumps(response).encode("utf-8") + b"\n")


def make_coordinator(files: Iterable[str], n_reduce: int) -> Coordinator:
    """Create a coordinator for the given input files and start serving workers."""
    coordinator = Coordinator(files, n_reduce)
    coordinator.serve()
    return coordinator