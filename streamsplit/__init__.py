"""
The streamsplit package splits unbounded binary streams at a fixed delimiter without buffering the
entire stream. The input is a sequence of chunks that may cut through a delimiter at any point; the
output is a sequence of segments in the order in which they occur in the input.

The package exports the following transforms from `streamsplit.split`:

1. `streamsplit.split.StreamSplit`: every segment is delivered as a `streamsplit.lib.sinks.Substream`
   which can be read while the segment is still being written.
2. `streamsplit.split.SimpleSplit`: the data of every segment is delivered as byte strings, either
   range by range as it is scanned, or as one complete byte string per segment.
3. `streamsplit.split.LineSplit`: a `streamsplit.split.SimpleSplit` that splits lines.

The splitting logic itself is implemented in `streamsplit.scanner`, the delimiter matching in
`streamsplit.lib.partial`. Configuration is done via environment variables, which are documented
in `streamsplit.lib.environment`.
"""
from __future__ import annotations

__version__ = '0.3.1'
__distribution__ = 'binary-streamsplit'

from streamsplit.lib.exceptions import (
    InvalidChunk,
    InvalidDelimiter,
    SinkClosed,
    SplitterException,
    SplitterFinished,
)
from streamsplit.lib.sinks import Sink, Substream
from streamsplit.scanner import Scanner
from streamsplit.split import LineSplit, SimpleSplit, StreamSplit, split, splitlines

__all__ = [
    'InvalidChunk',
    'InvalidDelimiter',
    'LineSplit',
    'Scanner',
    'SimpleSplit',
    'Sink',
    'SinkClosed',
    'split',
    'splitlines',
    'SplitterException',
    'SplitterFinished',
    'StreamSplit',
    'Substream',
]
