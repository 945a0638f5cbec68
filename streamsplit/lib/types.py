"""
This module is used as a unified resource for the buffer types that are accepted throughout
streamsplit, and for the routines that normalize input to these types.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from streamsplit.lib.exceptions import InvalidChunk, InvalidDelimiter

if TYPE_CHECKING:
    from typing import Union

    buf = Union[bytes, bytearray, memoryview]
    Text = Union[str, bytes, bytearray, memoryview]
else:
    buf = Any
    Text = Any


__all__ = [
    'asbuffer',
    'buf',
    'Text',
    'tobytes',
    'todelimiter',
]


def asbuffer(obj) -> memoryview | None:
    """
    Attempts to acquire a memoryview of the given object. This works for bytes and bytearrays, or
    memoryview objects themselves. The return value is `None` for objects that do not support the
    buffer protocol.
    """
    try:
        return memoryview(obj)
    except TypeError:
        return None


def tobytes(chunk: Text, codec: str = 'utf8') -> bytes:
    """
    Convert an input chunk to an immutable byte string. Strings are encoded using the given codec,
    objects that support the buffer protocol are copied. Everything else raises an
    `streamsplit.lib.exceptions.InvalidChunk` exception.
    """
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, str):
        return chunk.encode(codec)
    view = asbuffer(chunk)
    if view is None:
        raise InvalidChunk(chunk)
    with view:
        return view.tobytes()


def todelimiter(delimiter: Text, codec: str = 'utf8') -> bytes:
    """
    Convert a delimiter to bytes; it must be non-empty.
    """
    try:
        delimiter = tobytes(delimiter, codec)
    except InvalidChunk as IC:
        raise InvalidDelimiter(delimiter) from IC
    if not delimiter:
        raise InvalidDelimiter(delimiter)
    return delimiter
