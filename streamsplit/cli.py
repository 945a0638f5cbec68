#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command line interface of streamsplit. The `ssplit` command reads standard input in chunks and
splits it at the given delimiter. By default, segments are written to standard output as their
data arrives, separated by a line break. With the `-o` option, every segment is streamed into its
own file instead. Either way, segments of arbitrary size can be extracted from an endless stream.
"""
from __future__ import annotations

import argparse
import codecs
import os
import sys

import colorama

from argparse import ArgumentTypeError, RawDescriptionHelpFormatter
from typing import BinaryIO, Optional

import streamsplit

from streamsplit.lib.environment import LogLevel, environment, logger
from streamsplit.lib.exceptions import SplitterException
from streamsplit.lib.sinks import Sink
from streamsplit.lib.tools import readchunks
from streamsplit.split import StreamSplit

DEFAULT_CHUNK_SIZE = 0x10000


def binary_argument(argument: str) -> bytes:
    """
    Converts a command line argument to bytes. Arguments with the prefix `h:` are decoded as hex,
    all other arguments are UTF-8 encoded and may contain Python escape sequences such as `\\n` or
    `\\x00`.
    """
    if argument.startswith('h:'):
        try:
            return bytes.fromhex(argument[2:])
        except ValueError as V:
            raise ArgumentTypeError(F'invalid hex string: {argument[2:]}') from V
    try:
        data, _ = codecs.escape_decode(argument.encode('utf8'))
    except ValueError as V:
        raise ArgumentTypeError(F'invalid escape sequence in: {argument}') from V
    return data


class OutputSink(Sink):
    """
    A sink that writes the data of a segment to an output stream as soon as it arrives. Every
    segment except the first one is preceded by the separator.
    """

    def __init__(self, stream: BinaryIO, separator: bytes, index: int = 0):
        self.stream = stream
        if index:
            stream.write(separator)

    def push(self, data):
        self.stream.write(data)

    def close(self):
        pass


class FileSink(Sink):
    """
    A sink that writes the data of a segment to a file.
    """

    def __init__(self, directory: str, index: int = 0):
        self.path = os.path.join(directory, F'segment.{index:06d}')
        self.size = 0
        self._fd = open(self.path, 'wb')

    def push(self, data):
        self._fd.write(data)
        self.size += len(data)

    def close(self):
        self._fd.close()

    def fail(self, error):
        self._fd.close()


def main(argv: Optional[list[str]] = None, stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None) -> int:
    """
    Main routine of the `ssplit` command.
    """
    colorama.just_fix_windows_console()

    argp = argparse.ArgumentParser(
        prog='ssplit',
        formatter_class=RawDescriptionHelpFormatter,
        description=__doc__.strip(),
    )
    argp.add_argument(
        'delimiter',
        type=binary_argument,
        nargs='?',
        default=B'\n',
        help='The delimiter at which to split the input; the default is a line break.'
    )
    argp.add_argument(
        '-l', '--lines',
        action='store_true',
        help='Split the input into lines; the delimiter argument is ignored.'
    )
    argp.add_argument(
        '-i', '--ignore-previous',
        action='store_true',
        help='Do not detect delimiters that are split across chunk boundaries.'
    )
    argp.add_argument(
        '-s', '--separator',
        type=binary_argument,
        default=B'\n',
        help='Separator for segments written to standard output; the default is a line break.'
    )
    argp.add_argument(
        '-o', '--output',
        metavar='DIR',
        default=None,
        help='Stream each segment into its own file in this directory.'
    )
    argp.add_argument(
        '-z', '--size',
        type=lambda s: int(s, 0),
        default=environment.chunk_size.value or DEFAULT_CHUNK_SIZE,
        help='Read the input in chunks of this size; the default is %(default)d.'
    )
    argp.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Specify up to two times to increase log verbosity.'
    )
    argp.add_argument(
        '-V', '--version',
        action='store_true',
        help='Only show the currently installed version of streamsplit and exit.'
    )

    args = argp.parse_args(argv)
    log = logger('ssplit')

    if args.version:
        print(streamsplit.__version__)
        return 0
    if args.size < 1:
        argp.error('the chunk size has to be a positive integer value.')

    if stdin is None:
        stdin = sys.stdin.buffer
    if stdout is None:
        stdout = sys.stdout.buffer

    loglevel = environment.verbosity.value or LogLevel.FromVerbosity(args.verbose)
    log.setLevel(loglevel)

    if args.lines:
        args.delimiter = B'\n'

    if args.output is not None:
        directory = args.output
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as E:
            log.error(F'unable to create output directory: {E!s}')
            return 1
        splitter = StreamSplit(
            args.delimiter,
            ignore_previous=args.ignore_previous,
            create_stream=lambda index: FileSink(directory, index),
        )
    else:
        separator = args.separator
        splitter = StreamSplit(
            args.delimiter,
            ignore_previous=args.ignore_previous,
            create_stream=lambda index: OutputSink(stdout, separator, index),
        )

    splitter.log_level = loglevel

    try:
        if args.output is not None:
            for sink in splitter.process(readchunks(stdin, args.size)):
                log.info(F'streaming segment into {sink.path}')
        else:
            for _ in splitter.process(readchunks(stdin, args.size)):
                pass
            stdout.flush()
    except BrokenPipeError:
        pass
    except KeyboardInterrupt:
        log.warning('aborting due to keyboard interrupt')
        return 1
    except (OSError, SplitterException) as E:
        log.error(F'splitting failed: {E!s}')
        return 1
    else:
        log.info(F'wrote {splitter.scanner.segments} segments')
    return 0


if __name__ == '__main__':
    sys.exit(main())
