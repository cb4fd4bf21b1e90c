# distlab

Building blocks for distributed systems in pure Python, with no
third-party dependencies:

- **`distlab.mr`**: a MapReduce coordinator and worker that talk over a
  UNIX-domain socket (`protocol`, `coordinator`, `worker`).
- **`distlab.mrapps`**: map/reduce applications to run with the worker.
- **`distlab.shardcfg`**: shard configurations for a sharded key/value
  service, with join/leave and balanced reassignment of shards.
- **`distlab.persister`**: an in-memory store for Raft state and snapshots.
- **`distlab.raftapi`**: the interface a Raft peer offers and the
  `ApplyMsg` it delivers when an entry commits.

The MapReduce parts use UNIX-domain sockets and `os.getuid`, so they need
a POSIX system.

## MapReduce

A `Coordinator` hands out one map task per input file. When all map tasks
have been reported finished it hands out `n_reduce` reduce tasks, and when
those are finished it tells workers the job is done. A task that has been
out for more than ten seconds without a report is put back in the queue the
next time a worker asks for work, and a late report for it is ignored.

```python
import time
from distlab.mr.coordinator import make_coordinator

coordinator = make_coordinator(["pg-1.txt", "pg-2.txt"], 10)
try:
    while not coordinator.done():
        time.sleep(1)
finally:
    coordinator.close()
```

`make_coordinator` creates the coordinator and calls `serve()`, which
listens on the socket given by `distlab.mr.protocol.coordinator_sock()`
(`/var/tmp/5840-mr-<uid>`) in a background thread. `done()` returns `True`
once every reduce task has finished, after waiting `done_grace` seconds
(2 by default) so workers still polling can hear that the job is over.
`Coordinator` is also a context manager that calls `close()` on exit.
`assign_task` and `task_finished` can be called directly, without a server.

A worker runs in its own process with a map and a reduce function:

```python
from distlab.mr.worker import worker
from distlab.mrapps import wc

worker(wc.map_func, wc.reduce_func)
```

It asks for tasks once a second until the coordinator says the job is done
or can no longer be reached. A map function takes `(filename, contents)`
and returns a list of `KeyValue`; a reduce function takes `(key, values)`
and returns a string.

Files written in the current directory:

- `intermediate/mr-<map>-<reduce>`: map output, one JSON object
  `{"Key": ..., "Value": ...}` per line; a key goes to reduce task
  `ihash(key) % n_reduce`.
- `mr-out-<reduce>`: one `key output` line per key, in key order.

Both are written to a temporary file first and renamed into place.

Calls are one line of JSON each way: `{"method": ..., "args": ...}` with
method `Coordinator.AssignTask` or `Coordinator.TaskFin`, answered by
`{"reply": ...}` or `{"error": ...}`. `distlab.mr.worker.call` sends one
and raises `OSError` if the coordinator cannot be reached or answers with
an error.

### Applications

Each module in `distlab.mrapps` has `map_func` and `reduce_func`:

- `wc`: word count; words are runs of letters.
- `indexer`: for each word, the number of documents containing it and
  their sorted, comma-separated names.
- `crash`: exits the process about a third of the time and stalls up to
  ten seconds another third, to exercise task reassignment.
- `nocrash`: the same output as `crash`, without crashing or stalling.
- `early_exit`: one count per input file; reduces of keys containing
  `sherlock` or `tom` sleep three seconds first.
- `jobcount`: each map leaves an `mr-worker-jobcount-*` marker file and
  stalls 2–5 seconds; reduce returns the number of markers.
- `mtiming` and `rtiming`: record how many workers ran map (respectively
  reduce) tasks at the same time, via `nparallel(phase)`.

## Shard configurations

```python
from distlab.shardcfg import ShardConfig, key2shard, from_string

cfg = ShardConfig()
cfg.join_balance({1: ["x", "y", "z"]})
cfg.join_balance({2: ["a", "b", "c"]})
cfg.check_config([1, 2])        # raises ConfigError if wrong or unbalanced

gid, servers, ok = cfg.gid_servers(key2shard("some-key"))
same = from_string(cfg.to_string())
```

There are `NSHARDS = 12` shards. `join` and `leave` bump `num` and return
`True`; they return `False` when a group is already present or already
absent, and raise `ConfigError` when a join would put a server in two
groups or when called with nothing to add or remove. `rebalance` assigns
unassigned shards and moves shards until no group has two more than
another. `is_member(gid)` tells whether a group serves any shard.

## Persister

```python
from distlab.persister import Persister

p = Persister()
p.save(b"raft-state", b"snapshot")
assert p.read_raft_state() == b"raft-state"
assert p.snapshot_size() == 8
fresh = p.copy()
```

## Raft interface

`distlab.raftapi.Raft` is an abstract base class declaring `start`,
`get_state`, `snapshot`, `persist_bytes` and `kill`; committed entries and
snapshots are delivered as `ApplyMsg` values.

## What is not included

- No Raft implementation: `Raft` only declares the interface.
- No key/value server, shard controller or shard-group servers:
  `shardcfg` only computes and checks configurations.
- No command-line programs: the coordinator and worker are started from
  your own Python code, as shown above.