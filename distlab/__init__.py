"""MapReduce, shard configurations, a Raft interface and a persister for Raft state."""

__version__ = "0.1.0"