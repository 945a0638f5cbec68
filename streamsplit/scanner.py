#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The scanner consumes a stream of binary chunks and splits it at every occurrence of a delimiter,
including occurrences that are spread across several chunks. Every segment between two delimiters
is written to its own sink, and the `streamsplit.lib.sinks.SinkStrategy` passed to the scanner
determines what a sink is. The following example collects all segments in a list:

    >>> from streamsplit.lib.sinks import SegmentStrategy
    >>> segments = []
    >>> scanner = Scanner(B'<|>', SegmentStrategy(segments.append))
    >>> for chunk in (B'ab<', B'|', B'>cd'):
    ...     scanner.feed(chunk)
    >>> scanner.finish()
    >>> segments
    [b'ab', b'cd']

When the end of a chunk could be the beginning of a delimiter, these bytes are held back as the
pending tail and prepended to the next chunk. For single byte delimiters, this never happens, and
it can be disabled with the `partial` parameter for delimiters that are known to never be split.
"""
from __future__ import annotations

from streamsplit.lib.environment import Loggable
from streamsplit.lib.exceptions import SplitterFinished
from streamsplit.lib.partial import PartialMatcher
from streamsplit.lib.sinks import SinkStrategy
from streamsplit.lib.types import buf, todelimiter

__all__ = ['Scanner']


class Scanner(Loggable):
    """
    Splits a chunked byte stream at a fixed delimiter. Chunks are passed to `feed` in the order in
    which they arrive, and `finish` signals the end of the input.
    """

    segments: int
    """
    The number of sinks that have been opened.
    """
    delimiters: int
    """
    The number of delimiter occurrences that have been consumed.
    """
    consumed: int
    """
    The total number of input bytes.
    """

    def __init__(self, delimiter: buf, strategy: SinkStrategy, partial: bool = True):
        delimiter = todelimiter(delimiter)
        if not isinstance(strategy, SinkStrategy):
            raise TypeError(F'Invalid sink strategy: {strategy!r}')
        self._matcher = PartialMatcher(delimiter)
        self._partial = partial and len(delimiter) > 1
        self._pending = B''
        self._sink = None
        self._owed = False
        self._broken = False
        self._finished = False
        self.strategy = strategy
        self.segments = 0
        self.delimiters = 0
        self.consumed = 0

    @property
    def delimiter(self) -> bytes:
        return self._matcher.delimiter

    @property
    def partial(self) -> bool:
        """
        Whether delimiters that are split across chunk boundaries are detected.
        """
        return self._partial

    @property
    def pending(self) -> int:
        """
        The number of bytes that are currently held back. This is usually a potential splinter of the
        delimiter, but after a sink could not be created, it is all input that was not yet written.
        """
        return len(self._pending)

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, chunk: buf) -> None:
        """
        Process the next chunk of input. If the strategy fails to create a sink, the exception is
        raised to the caller and all input that was not yet written remains pending; it will be
        processed together with the next chunk or when the input is finished.
        """
        if self._finished:
            raise SplitterFinished
        if not isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk)
        if not chunk:
            return
        self.consumed += len(chunk)
        if self._pending:
            data = self._pending + chunk
            self._pending = B''
        else:
            data = chunk
        self._scan(data, self._partial)

    def finish(self) -> None:
        """
        Signal the end of the input. Any pending tail is not part of a delimiter and is written to
        the current segment, which is then closed. When this fails because no sink could be
        created, the input is not finished and `finish` can be called again.
        """
        if self._finished:
            return
        data, self._pending = self._pending, B''
        self._scan(data, False)
        if self._sink is None and self._owed:
            self._open()
        self._close()
        self._finished = True
        self.log_info(
            F'split {self.consumed} bytes into {self.segments} segments '
            F'at {self.delimiters} delimiters')

    def _scan(self, data: buf, partial: bool):
        matcher = self._matcher
        cursor = 0
        try:
            while (index := matcher.find(data, cursor)) >= 0:
                self._push(data[cursor:index])
                self._close()
                self.delimiters += 1
                self.log_debug(F'delimiter at offset {self.consumed - len(data) + index:#x}')
                cursor = index + len(matcher)
                self._owed = True
                self._open()
            keep = matcher.tail(data, cursor) if partial else 0
            end = len(data) - keep
            if end > cursor:
                self._push(data[cursor:end])
                cursor = end
        except Exception:
            self._pending = bytes(data[cursor:])
            raise
        if cursor < len(data):
            self._pending = bytes(data[cursor:])
            self.log_debug(F'holding back {len(self._pending)} bytes of a potential delimiter')

    def _open(self):
        index = self.segments
        self._sink = self.strategy.create(index)
        self._owed = False
        self._broken = False
        self.segments += 1
        self.log_debug(F'opened segment {index}')

    def _push(self, data: bytes):
        if self._sink is None:
            self._open()
        if self._broken or not data:
            return
        try:
            self.strategy.push(self._sink, data)
        except Exception as error:
            self._fail(error)

    def _close(self):
        sink = self._sink
        if sink is None:
            return
        self._sink = None
        try:
            self.strategy.close(sink)
        except Exception as error:
            self.log_warn(F'failed to close segment {self.segments - 1}: {error!s}')
            self.strategy.fail(sink, error)

    def _fail(self, error: Exception):
        self._broken = True
        self.log_warn(F'discarding remaining data of segment {self.segments - 1}: {error!s}')
        self.strategy.fail(self._sink, error)
