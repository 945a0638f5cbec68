#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Routines to locate a delimiter inside a buffer, and to determine whether the end of a buffer might
be the beginning of a delimiter whose remaining bytes have not arrived yet. Such a fragment is
called a splinter of the delimiter. Consider the delimiter `<|>` and the two chunks `ab<` and
`|>cd`: The first chunk contains no occurrence of the delimiter, but its last byte is a splinter:

    >>> partial_match_length(B'ab<', B'<|>')
    1
    >>> PartialMatcher(B'<|>').tail(B'ab<|')
    2
"""
from __future__ import annotations

from streamsplit.lib.types import buf, todelimiter


__all__ = [
    'failure_table',
    'partial_match_length',
    'PartialMatcher',
]


def partial_match_length(data: buf, delimiter: buf, bound: int | None = None, start: int = 0) -> int:
    """
    Returns the length of the longest suffix of `data[start:]` which is also a prefix of the
    `delimiter`, where only lengths up to `bound` are considered. By default, the bound is one less
    than the length of the delimiter, i.e. complete occurrences are not reported. Candidates are
    tested by decreasing length, which is quadratic in the length of the delimiter in the worst
    case. The return value is zero if no nonempty suffix matches.
    """
    size = len(data) - start
    if bound is None:
        bound = len(delimiter) - 1
    bound = min(bound, size, len(delimiter))
    view = memoryview(data)
    for length in range(bound, 0, -1):
        if view[-length:] == delimiter[:length]:
            return length
    return 0


def failure_table(delimiter: buf) -> list[int]:
    """
    Computes the prefix function of the delimiter: The entry at index `k` is the length of the
    longest proper prefix of `delimiter[:k + 1]` which is also a suffix of it.
    """
    table = [0] * len(delimiter)
    state = 0
    for k in range(1, len(delimiter)):
        byte = delimiter[k]
        while state and delimiter[state] != byte:
            state = table[state - 1]
        if delimiter[state] == byte:
            state += 1
        table[k] = state
    return table


class PartialMatcher:
    """
    Finds full and partial occurrences of a fixed delimiter in byte buffers. For short delimiters,
    partial matches are computed by `streamsplit.lib.partial.partial_match_length`. Delimiters
    longer than `AUTOMATON_THRESHOLD` bytes are matched by running the automaton defined by their
    `streamsplit.lib.partial.failure_table` over the end of the buffer; both methods yield the
    same result.
    """
    AUTOMATON_THRESHOLD = 32

    __slots__ = 'delimiter', 'head', '_table'

    delimiter: bytes
    head: bytes

    def __init__(self, delimiter: buf):
        delimiter = todelimiter(delimiter)
        self.delimiter = delimiter
        self.head = delimiter[:1]
        self._table = None

    def __len__(self):
        return len(self.delimiter)

    def __repr__(self):
        return F'{self.__class__.__name__}({self.delimiter!r})'

    @property
    def table(self) -> list[int]:
        if self._table is None:
            self._table = failure_table(self.delimiter)
        return self._table

    def find(self, data: bytes | bytearray, start: int = 0) -> int:
        """
        Returns the index of the first complete occurrence of the delimiter in `data` at or after
        `start`, or `-1` if there is none.
        """
        if len(data) - start < len(self.delimiter):
            return -1
        return data.find(self.delimiter, start)

    def tail(self, data: bytes | bytearray, start: int = 0) -> int:
        """
        Returns the length of the longest suffix of `data[start:]` that is a proper prefix of the
        delimiter. Such a suffix can only begin within the last `len(delimiter) - 1` bytes, and it
        has to begin with the first byte of the delimiter.
        """
        bound = min(len(self.delimiter) - 1, len(data) - start)
        if bound <= 0:
            return 0
        window = len(data) - bound
        if data.find(self.head, window) < 0:
            return 0
        if len(self.delimiter) <= self.AUTOMATON_THRESHOLD:
            return partial_match_length(data, self.delimiter, bound, window)
        return self._automaton(data, window)

    def _automaton(self, data: bytes | bytearray, window: int) -> int:
        delimiter = self.delimiter
        table = self.table
        final = len(delimiter)
        state = 0
        for k in range(window, len(data)):
            byte = data[k]
            while state and delimiter[state] != byte:
                state = table[state - 1]
            if delimiter[state] == byte:
                state += 1
            if state == final:
                state = table[state - 1]
        return state
