#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Miscellaneous helper functions for producing chunked input.
"""
from __future__ import annotations

from typing import BinaryIO, Iterable, Iterator

from streamsplit.lib.types import buf


def splitchunks(data: buf, size: int) -> Iterable[buf]:
    """
    Split `data` into chunks of size `size`; only the last chunk can be shorter than that.
    """
    if size < 1:
        raise ValueError('The chunk size has to be a positive integer value.')
    for k in range(0, len(data), size):
        yield data[k:k + size]


def splitat(data: buf, *offsets: int) -> list[buf]:
    """
    Split `data` at the given offsets. Offsets are sorted, and duplicates produce empty chunks.
    """
    cursor = 0
    chunks = []
    for offset in sorted(offsets):
        chunks.append(data[cursor:offset])
        cursor = offset
    chunks.append(data[cursor:])
    return chunks


def readchunks(stream: BinaryIO, size: int) -> Iterator[bytes]:
    """
    Read the given stream in chunks of at most `size` bytes until it is exhausted. Streams that
    support `read1` are read with it, so that data is passed on as soon as it arrives.
    """
    if size < 1:
        raise ValueError('The chunk size has to be a positive integer value.')
    read = getattr(stream, 'read1', stream.read)
    while chunk := read(size):
        yield chunk
