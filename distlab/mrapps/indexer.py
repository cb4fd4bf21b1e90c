"""Inverted index: for each word, the documents that contain it."""

from __future__ import annotations

from itertools import groupby

from distlab.mr.protocol import KeyValue


def _words(text: str) -> list[str]:
    return ["".join(run) for is_letter, run in groupby(text, key=str.isalpha) if is_letter]


def map_func(document: str, value: str) -> list[KeyValue]:
    """Emit (word, document) once for each distinct word in the document."""
    return [KeyValue(word, document) for word in set(_words(value))]


def reduce_func(key: str, values: list[str]) -> str:
    """Return the number of documents and their sorted, comma-separated names."""
    docs = sorted(values)
    return f"{len(docs)} {','.join(docs)}"