#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Transforms that connect a `streamsplit.scanner.Scanner` to a chunked input and an output sequence.
The input is written chunk by chunk, and the output items become available as soon as they are
produced. Items are either substreams (`StreamSplit`) or byte strings (`SimpleSplit`, `LineSplit`).
Byte strings are ranges of data which are output as soon as they have been scanned, unless the
transform is asked to assemble complete segments.
Every transform also works as a generator over an iterable of chunks:

    >>> list(LineSplit().process([B'line1\\nline2\\n', B'line3']))
    [b'line1', b'line2', b'line3']

Since the generator only consumes the next input chunk when the next output item is requested,
wrapping a transform around a lazy source does not buffer the source.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterable, Iterator, Optional

from streamsplit.lib.environment import LogLevel
from streamsplit.lib.sinks import RangeStrategy, SegmentStrategy, Sink, SinkStrategy, StreamStrategy, Substream
from streamsplit.lib.types import Text, tobytes, todelimiter
from streamsplit.scanner import Scanner


__all__ = [
    'StreamSplit',
    'SimpleSplit',
    'LineSplit',
    'split',
    'splitlines',
]


class StreamSplit:
    """
    Splits the input at the given delimiter and outputs one `streamsplit.lib.sinks.Substream` for
    each segment. A substream is delivered as soon as its segment begins, so segments of any size
    can be consumed incrementally. To use a different kind of sink, either override the method
    `create_stream` or pass a factory as the `create_stream` argument.

    The `delimiter` can be given as a string, in which case it is encoded using `codec`; the same
    applies to input chunks. If `ignore_previous` is set, delimiters that are split across two
    chunks are not detected; this is also the case for all single byte delimiters, because they can
    not be split.
    """

    def __init__(
        self,
        delimiter: Text,
        ignore_previous: bool = False,
        create_stream: Optional[Callable[..., Sink]] = None,
        codec: str = 'utf8',
    ):
        if create_stream is not None:
            if not callable(create_stream):
                raise TypeError(F'The stream factory {create_stream!r} is not callable.')
            self.create_stream = create_stream
        self.codec = codec
        self.ignore_previous = ignore_previous
        self._output: deque[Any] = deque()
        self.scanner = Scanner(
            todelimiter(delimiter, codec), self.create_strategy(), partial=not ignore_previous)

    def __repr__(self):
        return F'{self.__class__.__name__}({self.delimiter!r})'

    @property
    def delimiter(self) -> bytes:
        return self.scanner.delimiter

    @property
    def finished(self) -> bool:
        return self.scanner.finished

    @property
    def log_level(self) -> LogLevel:
        return self.scanner.log_level

    @log_level.setter
    def log_level(self, value: int | LogLevel):
        self.scanner.log_level = value

    def create_stream(self, index: int = 0) -> Sink:
        """
        Returns a new sink for the segment with the given index.
        """
        return Substream(index)

    def create_strategy(self) -> SinkStrategy:
        return StreamStrategy(self._output.append, self.create_stream)

    def write(self, chunk: Text) -> None:
        """
        Write the next chunk of input. Strings are encoded using the codec of the transform; any
        input that is neither a string nor a binary buffer raises an exception.
        """
        self.scanner.feed(tobytes(chunk, self.codec))

    def end(self, chunk: Optional[Text] = None) -> None:
        """
        Signal the end of the input, optionally after writing one last chunk.
        """
        if chunk is not None:
            self.write(chunk)
        self.scanner.finish()

    def read(self) -> Any:
        """
        Returns the next output item, or `None` if none is currently available.
        """
        try:
            return self._output.popleft()
        except IndexError:
            return None

    def drain(self) -> Iterator[Any]:
        """
        Generates all output items that are currently available.
        """
        output = self._output
        while output:
            yield output.popleft()

    def __iter__(self):
        return self.drain()

    def process(self, chunks: Iterable[Text] | Text) -> Iterator[Any]:
        """
        Writes all chunks from the given iterable, ends the input and generates the output items
        as they become available. A single string or buffer is treated as a single chunk.
        """
        if isinstance(chunks, (str, bytes, bytearray, memoryview)):
            chunks = (chunks,)
        for chunk in chunks:
            self.write(chunk)
            yield from self.drain()
        self.end()
        yield from self.drain()


class SimpleSplit(StreamSplit):
    """
    Splits the input at the given delimiter and outputs byte strings. By default, every range of
    data is output as soon as it has been scanned, so a segment may arrive in several pieces and
    no segment is ever held in memory; a segment without any data is output as one empty byte
    string. If `assemble` is set, each segment is collected and output as a single byte string once
    it is complete.
    """

    def __init__(self, delimiter: Text, ignore_previous: bool = False, codec: str = 'utf8', assemble: bool = False):
        self.assemble = assemble
        super().__init__(delimiter, ignore_previous=ignore_previous, codec=codec)

    def create_strategy(self) -> SinkStrategy:
        if self.assemble:
            return SegmentStrategy(self._output.append)
        return RangeStrategy(self._output.append)


class LineSplit(SimpleSplit):
    """
    Splits the input into lines; line breaks are removed.
    """

    def __init__(self, ignore_previous: bool = False, codec: str = 'utf8', assemble: bool = False):
        super().__init__(B'\n', ignore_previous=ignore_previous, codec=codec, assemble=assemble)


def split(
    chunks: Iterable[Text] | Text,
    delimiter: Text,
    ignore_previous: bool = False,
    codec: str = 'utf8',
) -> Iterator[bytes]:
    """
    Generates the complete segments of a chunked input as byte strings.
    """
    return SimpleSplit(delimiter, ignore_previous, codec, assemble=True).process(chunks)


def splitlines(chunks: Iterable[Text] | Text, codec: str = 'utf8') -> Iterator[bytes]:
    """
    Generates the complete lines of a chunked input as byte strings.
    """
    return LineSplit(codec=codec, assemble=True).process(chunks)
