#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sinks receive the data of a single segment. The scanner in `streamsplit.scanner` does not create,
fill, or close sinks by itself; it delegates these three operations to a `SinkStrategy`. There are
three strategies:

- The `StreamStrategy` creates one `Substream` per segment and delivers it to the consumer as soon
  as the segment begins. The consumer can read from it while the segment is still being written.
- The `SegmentStrategy` collects the data of each segment and delivers it as a single byte string
  once the segment is complete.
- The `RangeStrategy` delivers every range of data as soon as it is written, so no segment is ever
  held in memory.
"""
from __future__ import annotations

import abc
import inspect
import threading

from collections import deque
from typing import TYPE_CHECKING, Any, Callable, Iterator

from streamsplit.lib.exceptions import SinkClosed
from streamsplit.lib.types import buf

if TYPE_CHECKING:
    Deliver = Callable[[Any], None]
    SinkFactory = Callable[..., 'Sink']


__all__ = [
    'Sink',
    'Substream',
    'SinkStrategy',
    'StreamStrategy',
    'SegmentStrategy',
    'RangeStrategy',
]


class Sink(abc.ABC):
    """
    The interface that any custom sink has to implement. Implementing `streamsplit.lib.sinks.Sink.fail`
    is optional; it is invoked when an earlier call to `push` failed.
    """

    @abc.abstractmethod
    def push(self, data: buf) -> None:
        ...

    @abc.abstractmethod
    def close(self) -> None:
        ...

    def fail(self, error: BaseException) -> None:
        pass


class Substream(Sink):
    """
    An in-memory pipe that holds the data of one segment. The producer pushes data and closes the
    substream when the segment ends. Consumers may read from it concurrently from another thread;
    reading blocks until data is available or the segment has ended. In a single thread, only read
    from a substream after its segment has ended, or use `streamsplit.lib.sinks.Substream.read_nowait`.
    """

    def __init__(self, index: int = 0):
        self.index = index
        self._pieces: deque[bytes] = deque()
        self._available = 0
        self._closed = False
        self._cancelled = False
        self._error: BaseException | None = None
        self._cv = threading.Condition()

    def __repr__(self):
        state = 'closed' if self._closed else 'open'
        return F'<{self.__class__.__name__} #{self.index} {state}, {self._available} bytes buffered>'

    @property
    def closed(self) -> bool:
        """
        Whether the producer has signalled the end of this segment.
        """
        return self._closed

    @property
    def eof(self) -> bool:
        """
        Whether the segment has ended and all of its data has been consumed.
        """
        with self._cv:
            return self._closed and not self._pieces

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def available(self) -> int:
        """
        The number of bytes that can currently be read without blocking.
        """
        return self._available

    def push(self, data: buf) -> None:
        with self._cv:
            if self._closed or self._cancelled:
                raise SinkClosed(self.index, self._cancelled)
            if not data:
                return
            self._pieces.append(bytes(data))
            self._available += len(data)
            self._cv.notify_all()

    def close(self) -> None:
        with self._cv:
            self._closed = True
            self._cv.notify_all()

    def fail(self, error: BaseException) -> None:
        """
        Ends the segment with an error; it will be raised to the consumer once all data that was
        pushed before the failure has been read.
        """
        with self._cv:
            self._error = error
            self._closed = True
            self._cv.notify_all()

    def cancel(self) -> None:
        """
        Abandon this segment from the consumer side. Buffered data is discarded and any further
        attempt to push data into the substream fails.
        """
        with self._cv:
            self._cancelled = True
            self._pieces.clear()
            self._available = 0
            self._cv.notify_all()

    def readable(self) -> bool:
        return True

    def _take(self, size: int) -> bytes:
        if size < 0 or size >= self._available:
            data = B''.join(self._pieces)
            self._pieces.clear()
        else:
            out = bytearray()
            while len(out) < size:
                piece = self._pieces.popleft()
                rest = size - len(out)
                if len(piece) > rest:
                    self._pieces.appendleft(piece[rest:])
                    piece = piece[:rest]
                out.extend(piece)
            data = bytes(out)
        self._available -= len(data)
        return data

    def _check(self):
        if self._cancelled:
            raise SinkClosed(self.index, True)
        if self._error is not None and not self._pieces:
            raise self._error

    def read(self, size: int = -1, timeout: float | None = None) -> bytes:
        """
        Read up to `size` bytes, or everything until the end of the segment if `size` is negative.
        The call blocks until data is available; an empty byte string is only returned at the end
        of the segment. If `timeout` expires, the currently buffered data is returned.
        """
        if size == 0:
            return B''
        with self._cv:
            if size < 0:
                self._cv.wait_for(lambda: self._closed or self._cancelled, timeout)
            else:
                self._cv.wait_for(lambda: self._pieces or self._closed or self._cancelled, timeout)
            self._check()
            return self._take(size)

    def read_nowait(self, size: int = -1) -> bytes:
        """
        Read up to `size` bytes of the currently buffered data without blocking.
        """
        with self._cv:
            self._check()
            return self._take(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        data = self.read(len(buffer))
        size = len(data)
        memoryview(buffer)[:size] = data
        return size

    def chunks(self) -> Iterator[bytes]:
        """
        Generates the pushed pieces of data in the order they were pushed, until the segment ends.
        """
        while True:
            with self._cv:
                self._cv.wait_for(lambda: self._pieces or self._closed or self._cancelled)
                self._check()
                if not self._pieces:
                    return
                piece = self._pieces.popleft()
                self._available -= len(piece)
            yield piece

    def __iter__(self):
        return self.chunks()


class SinkStrategy(abc.ABC):
    """
    Controls how the sink of a segment is created, filled, and closed. The `deliver` callable
    appends an item to the output sequence of the consumer.
    """

    def __init__(self, deliver: Deliver):
        self.deliver = deliver

    @abc.abstractmethod
    def create(self, index: int) -> Any:
        ...

    @abc.abstractmethod
    def push(self, sink: Any, data: buf) -> None:
        ...

    @abc.abstractmethod
    def close(self, sink: Any) -> None:
        ...

    def fail(self, sink: Any, error: BaseException) -> None:
        """
        Route an error that occurred while writing to the sink into the error channel of the sink.
        """
        try:
            fail = sink.fail
        except AttributeError:
            return
        fail(error)


class StreamStrategy(SinkStrategy):
    """
    One sink per segment, delivered to the consumer when it is created. The `factory` can be any
    callable that returns an object with the methods `push` and `close`; if it accepts a keyword
    argument called `index`, it receives the number of the segment.
    """

    def __init__(self, deliver: Deliver, factory: SinkFactory = Substream):
        super().__init__(deliver)
        self.factory = factory
        try:
            parameters = inspect.signature(factory).parameters
        except (TypeError, ValueError):
            self._indexed = False
        else:
            self._indexed = 'index' in parameters or any(
                p.kind is p.VAR_KEYWORD for p in parameters.values())

    def create(self, index: int):
        if self._indexed:
            sink = self.factory(index=index)
        else:
            sink = self.factory()
        self.deliver(sink)
        return sink

    def push(self, sink, data: buf):
        sink.push(data)

    def close(self, sink):
        sink.close()


class SegmentStrategy(SinkStrategy):
    """
    Assembles each segment in memory and delivers it as one byte string when it is complete.
    """

    def create(self, index: int) -> bytearray:
        return bytearray()

    def push(self, sink: bytearray, data: buf):
        sink.extend(data)

    def close(self, sink: bytearray):
        self.deliver(bytes(sink))


class Range:
    """
    The sink of a segment in the `streamsplit.lib.sinks.RangeStrategy`; it only counts the data.
    """
    __slots__ = 'index', 'size'

    def __init__(self, index: int):
        self.index = index
        self.size = 0


class RangeStrategy(SinkStrategy):
    """
    Delivers every range of data as soon as the scanner writes it, without collecting the segment
    in memory. A segment that receives no data at all is delivered as one empty byte string when it
    ends, so that empty segments are not lost. The consumer receives all data in order, but a
    segment may arrive in several pieces; use the `SegmentStrategy` to receive complete segments.
    """

    def create(self, index: int) -> Range:
        return Range(index)

    def push(self, sink: Range, data: buf):
        sink.size += len(data)
        self.deliver(bytes(data))

    def close(self, sink: Range):
        if not sink.size:
            self.deliver(B'')
