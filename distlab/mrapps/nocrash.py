"""The crash application without the crashes: a deterministic baseline."""

from __future__ import annotations

import secrets

from distlab.mr.protocol import KeyValue


def maybe_crash() -> None:
    """Draw a random number as the crashing variant does, but never crash."""
    secrets.randbelow(1000)


def map_func(filename: str, contents: str) -> list[KeyValue]:
    maybe_crash()
    return [
        KeyValue("a", filename),
        KeyValue("b", str(len(filename))),
        KeyValue("c", str(len(contents))),
        KeyValue("d", "xyzzy"),
    ]


def reduce_func(key: str, values: list[str]) -> str:
    """Join the values in sorted order so the output is deterministic."""
    maybe_crash()
    return " ".join(sorted(values))