#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import itertools
import random

from streamsplit.lib.exceptions import InvalidDelimiter, SplitterFinished
from streamsplit.lib.sinks import SegmentStrategy, StreamStrategy, Substream
from streamsplit.lib.tools import splitat, splitchunks
from streamsplit.scanner import Scanner

from . import TestBase


class TestScanner(TestBase):

    def scan(self, delimiter, chunks, partial=True):
        segments = []
        scanner = Scanner(delimiter, SegmentStrategy(segments.append), partial=partial)
        for chunk in chunks:
            scanner.feed(chunk)
        scanner.finish()
        return segments

    def expected(self, data, delimiter):
        if not data:
            return []
        return data.split(delimiter)

    def test_splinter_example(self):
        self.assertEqual(self.scan(B'<|>', [B'ab<', B'|', B'>cd']), [B'ab', B'cd'])

    def test_line_example(self):
        self.assertEqual(
            self.scan(B'\n', [B'line1\nline2\n', B'line3']),
            [B'line1', B'line2', B'line3'])

    def test_empty_segments(self):
        for delimiter in (B'\n', B'<|>', B'<delimiter>'):
            self.assertEqual(self.scan(delimiter, [delimiter * 2]), [B'', B'', B''])
            self.assertEqual(self.scan(delimiter, [delimiter, delimiter]), [B'', B'', B''])
            self.assertEqual(self.scan(delimiter, list(splitchunks(delimiter * 2, 1))), [B'', B'', B''])

    def test_delimiter_at_boundaries(self):
        self.assertEqual(self.scan(B'<|>', [B'<|>abc']), [B'', B'abc'])
        self.assertEqual(self.scan(B'<|>', [B'abc<|>']), [B'abc', B''])

    def test_no_input_produces_no_segment(self):
        self.assertEqual(self.scan(B'<|>', []), [])
        self.assertEqual(self.scan(B'<|>', [B'', B'']), [])

    def test_delimiter_never_appears(self):
        self.assertEqual(self.scan(B'<|>', [B'Binary ', B'Refinery']), [B'Binary Refinery'])

    def test_delimiter_as_long_as_chunk(self):
        for delimiter in (B'\n', B'<|>', B'ENDOFRECORD'):
            self.assertEqual(self.scan(delimiter, [delimiter]), [B'', B''])
            self.assertEqual(self.scan(delimiter, [B'ab', delimiter, B'cd']), [B'ab', B'cd'])
            self.assertEqual(self.scan(delimiter, [B'x' * len(delimiter), delimiter]), [B'x' * len(delimiter), B''])

    def test_trailing_partial_match_is_flushed(self):
        self.assertEqual(self.scan(B'<|>', [B'abc<|']), [B'abc<|'])
        self.assertEqual(self.scan(B'<|>', [B'abc<|>def<', B'|']), [B'abc', B'def<|'])

    def test_leading_partial_match_is_flushed(self):
        self.assertEqual(self.scan(B'<|>', [B'<|']), [B'<|'])
        self.assertEqual(self.scan(B'<delimiter>', [B'<', B'del']), [B'<del'])

    def test_false_splinter_is_released(self):
        self.assertEqual(self.scan(B'<|>', [B'ab<', B'x|>', B'cd']), [B'ab<x|>cd'])
        self.assertEqual(self.scan(B'<|>', [B'ab<|', B'<|>cd']), [B'ab<|', B'cd'])

    def test_splinter_over_many_chunks(self):
        delimiter = B'<delimiter>'
        data = B'Other stars' + delimiter + B'anon shall rise' + delimiter + B'To the axis'
        for n in (2, 3, len(delimiter)):
            pieces = list(splitchunks(delimiter, -(-len(delimiter) // n)))
            chunks = [B'Other stars', *pieces, B'anon shall rise', *pieces, B'To the axis']
            self.assertEqual(self.scan(delimiter, chunks), self.expected(data, delimiter))

    def test_one_byte_per_chunk(self):
        data = B'Stars that soothe<||>and stars that bless<||><||>With a sweet forgetfulness<|'
        chunks = list(splitchunks(data, 1))
        self.assertEqual(self.scan(B'<||>', chunks), self.expected(data, B'<||>'))

    def test_overlapping_prefixes(self):
        for delimiter, data in [
            (B'aab', B'aaab'),
            (B'aa', B'aaa'),
            (B'abab', B'abababab'),
            (B'ababc', B'abababcababc'),
            (B'\r\n', B'\r\r\n\r\n\n\r'),
        ]:
            expected = self.expected(data, delimiter)
            for chunks in (splitchunks(data, 1), splitchunks(data, 2), splitchunks(data, 3)):
                self.assertEqual(self.scan(delimiter, list(chunks)), expected)

    def test_single_byte_delimiter_never_holds_back(self):
        segments = []
        scanner = Scanner(B'\n', SegmentStrategy(segments.append))
        self.assertFalse(scanner.partial)
        for chunk in (B'a', B'\n', B'b\nc', B'\n'):
            scanner.feed(chunk)
            self.assertEqual(scanner.pending, 0)
        scanner.finish()
        self.assertEqual(segments, [B'a', B'b', B'c', B''])

    def test_partial_matching_can_be_disabled(self):
        self.assertEqual(self.scan(B'<|>', [B'ab<', B'|', B'>cd'], partial=False), [B'ab<|>cd'])
        self.assertEqual(self.scan(B'<|>', [B'ab<|>', B'cd'], partial=False), [B'ab', B'cd'])

    def test_pending_tail_is_tracked(self):
        scanner = Scanner(B'<|>', SegmentStrategy(lambda _: None))
        self.assertTrue(scanner.partial)
        scanner.feed(B'ab<|')
        self.assertEqual(scanner.pending, 2)
        scanner.feed(B'x')
        self.assertEqual(scanner.pending, 0)

    def test_counters(self):
        scanner = Scanner(B'--', SegmentStrategy(lambda _: None))
        for chunk in (B'a-', B'-b--', B'c-'):
            scanner.feed(chunk)
        scanner.finish()
        self.assertEqual(scanner.consumed, 8)
        self.assertEqual(scanner.delimiters, 2)
        self.assertEqual(scanner.segments, 3)

    def test_memoryview_and_bytearray_chunks(self):
        chunks = [memoryview(B'ab<'), bytearray(B'|>c'), memoryview(bytearray(B'd'))]
        self.assertEqual(self.scan(B'<|>', chunks), [B'ab', B'cd'])

    def test_many_delimiters_in_one_chunk(self):
        data = B'x,' * 50000
        segments = self.scan(B',', [data])
        self.assertEqual(len(segments), 50001)
        segments = self.scan(B'<|>', [data.replace(B',', B'<|>')])
        self.assertEqual(len(segments), 50001)

    def test_round_trip_all_split_positions(self):
        delimiter = B'<|>'
        data = B'ab<|>c<<|>|><|'
        for i, j in itertools.combinations_with_replacement(range(len(data) + 1), 2):
            chunks = splitat(data, i, j)
            segments = self.scan(delimiter, chunks)
            self.assertEqual(delimiter.join(segments), data)
            self.assertEqual(segments, self.expected(data, delimiter))

    def test_chunk_invariance_random(self):
        for _ in range(60):
            delimiter = self.generate_random_buffer(random.randrange(1, 6), B'ab')
            data = self.generate_random_buffer(random.randrange(0, 80), B'abc')
            expected = self.expected(data, delimiter)
            for _ in range(10):
                chunks = self.generate_random_chunking(data)
                self.assertEqual(self.scan(delimiter, chunks), expected)
                self.assertEqual(b''.join(chunks), data)

    def test_long_delimiter_round_trip(self):
        delimiter = B'=' * 40 + B'BOUNDARY' + B'=' * 40
        parts = [self.generate_random_text(random.randrange(0, 200)) for _ in range(8)]
        parts.append(B'=' * 60)
        data = delimiter.join(parts)
        for size in (1, 7, 33, 100):
            segments = self.scan(delimiter, list(splitchunks(data, size)))
            self.assertEqual(segments, self.expected(data, delimiter))
            self.assertEqual(delimiter.join(segments), data)

    def test_invalid_delimiter(self):
        with self.assertRaises(InvalidDelimiter):
            Scanner(B'', SegmentStrategy(list().append))
        with self.assertRaises(ValueError):
            Scanner(B'', SegmentStrategy(list().append))
        with self.assertRaises(TypeError):
            Scanner(B'x', list())

    def test_feed_after_finish(self):
        scanner = Scanner(B'x', SegmentStrategy(list().append))
        scanner.finish()
        scanner.finish()
        with self.assertRaises(SplitterFinished):
            scanner.feed(B'data')


class TestScannerSinkLifecycle(TestBase):

    class RecordingSink:
        def __init__(self, index, log):
            self.index = index
            self.log = log
            self.data = bytearray()
            self.closed = False
            self.error = None

        def push(self, data):
            assert not self.closed, 'push after close'
            self.data.extend(data)

        def close(self):
            assert not self.closed, 'closed twice'
            self.closed = True
            self.log.append(('close', self.index))

        def fail(self, error):
            self.error = error

    def test_sinks_are_opened_and_closed_once(self):
        log = []
        output = []
        scanner = Scanner(B'<|>', StreamStrategy(output.append, lambda index: self.RecordingSink(index, log)))
        for chunk in (B'<|>a<', B'|><|', B'>b'):
            scanner.feed(chunk)
        scanner.finish()
        self.assertEqual([bytes(s.data) for s in output], [B'', B'a', B'', B'b'])
        self.assertTrue(all(s.closed for s in output))
        self.assertEqual(log, [('close', 0), ('close', 1), ('close', 2), ('close', 3)])

    def test_substreams_contain_segments(self):
        output = []
        scanner = Scanner(B'\r\n', StreamStrategy(output.append))
        for chunk in (B'Only when my round is o\'er\r', B'\nShall the past', B' disturb thy door.'):
            scanner.feed(chunk)
        self.assertEqual(len(output), 2)
        self.assertTrue(output[0].closed)
        self.assertFalse(output[1].closed)
        self.assertEqual(output[1].read_nowait(), B'Shall the past disturb thy door.')
        scanner.finish()
        self.assertTrue(all(isinstance(s, Substream) for s in output))
        self.assertEqual(output[0].read(), B'Only when my round is o\'er')
        self.assertTrue(output[1].eof)

    def test_sink_error_does_not_affect_other_segments(self):
        class FragileSink(self.RecordingSink):
            def push(self, data):
                if b'!' in data:
                    raise RuntimeError('fragile')
                super().push(data)

        log = []
        output = []
        scanner = Scanner(B'<|>', StreamStrategy(output.append, lambda index: FragileSink(index, log)))
        for chunk in (B'good<|>ba', B'd!', B'more<', B'|>fine', B'<|', B'>'):
            scanner.feed(chunk)
        scanner.finish()
        self.assertEqual(scanner.segments, 4)
        self.assertEqual([bytes(s.data) for s in output], [B'good', B'ba', B'fine', B''])
        self.assertIsNone(output[0].error)
        self.assertIsInstance(output[1].error, RuntimeError)
        self.assertIsNone(output[2].error)
        self.assertTrue(all(s.closed for s in output))

    def test_cancelled_substream_does_not_stop_scanner(self):
        output = []
        scanner = Scanner(B';', StreamStrategy(output.append))
        scanner.feed(B'abc')
        output[0].cancel()
        scanner.feed(B'def;ghi')
        scanner.finish()
        self.assertEqual(len(output), 2)
        self.assertEqual(output[1].read(), B'ghi')


class TestScannerSinkCreationFailure(TestBase):

    class UnreliableSegments(SegmentStrategy):
        def __init__(self, deliver, *failures):
            super().__init__(deliver)
            self.calls = 0
            self.failures = failures

        def create(self, index):
            self.calls += 1
            if self.calls in self.failures:
                raise ConnectionError(F'unable to create sink for segment {index}')
            return super().create(index)

    def test_failure_after_delimiter_keeps_remaining_input(self):
        segments = []
        scanner = Scanner(B'<|>', self.UnreliableSegments(segments.append, 2))
        with self.assertRaises(ConnectionError):
            scanner.feed(B'aa<|>bb<|>cc')
        self.assertEqual(segments, [B'aa'])
        self.assertEqual(scanner.delimiters, 1)
        self.assertEqual(scanner.pending, 7)
        scanner.feed(B'dd')
        scanner.finish()
        self.assertEqual(segments, [B'aa', B'bb', B'ccdd'])
        self.assertEqual(scanner.delimiters, 2)
        self.assertEqual(scanner.consumed, 14)

    def test_failure_in_finish_keeps_pending_tail(self):
        segments = []
        scanner = Scanner(B'<|>', self.UnreliableSegments(segments.append, 1))
        scanner.feed(B'<|')
        with self.assertRaises(ConnectionError):
            scanner.finish()
        self.assertFalse(scanner.finished)
        self.assertEqual(scanner.pending, 2)
        scanner.finish()
        self.assertTrue(scanner.finished)
        self.assertEqual(segments, [B'<|'])

    def test_trailing_empty_segment_is_created_on_finish(self):
        segments = []
        scanner = Scanner(B'<|>', self.UnreliableSegments(segments.append, 2))
        with self.assertRaises(ConnectionError):
            scanner.feed(B'ab<|>')
        self.assertEqual(scanner.pending, 0)
        scanner.finish()
        self.assertEqual(segments, [B'ab', B''])
        self.assertEqual(scanner.segments, 2)

    def test_round_trip_with_failures(self):
        delimiter = B'<|>'
        data = B'ab<|>c<<|>|><|d<|><|>'
        for failure in range(1, 6):
            for size in (1, 2, 3, 5):
                segments = []
                scanner = Scanner(delimiter, self.UnreliableSegments(segments.append, failure))
                for chunk in splitchunks(data, size):
                    try:
                        scanner.feed(chunk)
                    except ConnectionError:
                        pass
                scanner.finish()
                self.assertEqual(segments, data.split(delimiter))
