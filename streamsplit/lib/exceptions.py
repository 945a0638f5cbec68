#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
All exceptions that are raised by streamsplit derive from `SplitterException`. Each of them also
derives from the builtin exception type that best describes the problem, so that callers which do
not know about this module can still catch them.
"""
from __future__ import annotations


class SplitterException(Exception):
    """
    Base class for all exceptions raised by streamsplit.
    """


class InvalidDelimiter(SplitterException, ValueError):
    """
    The delimiter is empty or can not be converted to a byte string.
    """
    def __init__(self, delimiter):
        if not delimiter and isinstance(delimiter, (str, bytes, bytearray, memoryview)):
            msg = 'The delimiter must not be empty.'
        else:
            msg = F'Invalid delimiter of type {type(delimiter).__name__}: {delimiter!r}'
        super().__init__(msg)
        self.delimiter = delimiter


class InvalidChunk(SplitterException, TypeError):
    """
    Raised for input chunks that are neither textual nor byte-like.
    """
    def __init__(self, chunk):
        super().__init__(F'Cannot split non-binary data of type {type(chunk).__name__}.')
        self.chunk = chunk


class SplitterFinished(SplitterException, RuntimeError):
    """
    Raised when input is written after the end of the input was signalled.
    """
    def __init__(self):
        super().__init__('Input was received after the end of the stream.')


class SinkClosed(SplitterException, BrokenPipeError):
    """
    Raised when data is pushed into a sink that was already closed by its producer or abandoned by
    its consumer.
    """
    def __init__(self, index: int = 0, cancelled: bool = False):
        reason = 'cancelled by its consumer' if cancelled else 'already closed'
        super().__init__(F'Sink for segment {index} was {reason}.')
        self.index = index
        self.cancelled = cancelled
