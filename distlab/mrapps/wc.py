"""Word count: counts how often each word appears across the input files."""

from __future__ import annotations

from itertools import groupby

from distlab.mr.protocol import KeyValue


def _words(text: str) -> list[str]:
    """Split text into maximal runs of letters."""
    return ["".join(run) for is_letter, run in groupby(text, key=str.isalpha) if is_letter]


def map_func(filename: str, contents: str) -> list[KeyValue]:
    """Emit (word, "1") for every word in the contents; the file name is ignored."""
    return [KeyValue(word, "1") for word in _words(contents)]


def reduce_func(key: str, values: list[str]) -> str:
    """Return the number of occurrences of the word."""
    return str(len(values))