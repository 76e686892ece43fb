#!/usr/bin/env python3
"""
Tests for the record readers and the log driver.
"""

import io
import os
import struct
import sys
import tempfile
import unittest
from contextlib import redirect_stdout

# Add the repository root to the path for imports
root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if root_dir not in sys.path:
    sys.path.append(root_dir)

from log_builder import EV_NO_ACTION, EV_SEPARATOR, agile_record, legacy_record, spec_id_event_data, spec_id_record

from TcgEventLog.core.cursor import ByteCursor
from TcgEventLog.core.models import (
    Digest,
    DigestAlgorithmEntry,
    DigestRegistry,
    RawEvent,
    SeparatorEvent,
    SpecIdEvent,
)
from TcgEventLog.parsers.tcg_parser import (
    LogFormatError,
    TCGLogParser,
    convert_payload_to_dict,
    parse_event_log,
    read_agile,
    read_legacy,
)

SHA1 = 0x0004
SHA256 = 0x000B


def make_registry(pairs):
    return DigestRegistry(entries=tuple(DigestAlgorithmEntry(alg, size) for alg, size in pairs))


class TestReadLegacy(unittest.TestCase):
    """Test cases for read_legacy"""

    def test_reads_spec_id_record(self):
        """Test reading the legacy Spec ID record"""
        cursor = ByteCursor(spec_id_record([(SHA256, 32)]) + b"\xEE")
        record = read_legacy(cursor)
        self.assertEqual(record.pcr_index, 0)
        self.assertEqual(record.event_type, EV_NO_ACTION)
        self.assertEqual(record.digest, b"\x00" * 20)
        self.assertIsInstance(record.payload, SpecIdEvent)
        self.assertEqual(cursor.remaining, 1)

    def test_other_record_is_raw(self):
        """Test that other legacy records keep raw data"""
        record = read_legacy(ByteCursor(legacy_record(4, EV_SEPARATOR, b"\x00" * 4, digest=b"\x11" * 20)))
        self.assertEqual(record.payload, RawEvent(b"\x00" * 4))

    def test_truncated_event_data(self):
        """Test a legacy record with truncated event data"""
        data = legacy_record(0, EV_NO_ACTION, b"\x00" * 10)
        self.assertIsNone(read_legacy(ByteCursor(data[:-1])))

    def test_truncated_header(self):
        """Test a truncated legacy header"""
        self.assertIsNone(read_legacy(ByteCursor(b"\x00" * 31)))


class TestReadAgile(unittest.TestCase):
    """Test cases for read_agile"""

    def test_consumes_digests_by_registry_size(self):
        """Test that digests are read with the registry sizes"""
        registry = make_registry([(SHA1, 32), (SHA256, 20)])
        data = agile_record(7, EV_SEPARATOR, [(SHA256, b"\xAA" * 20), (SHA1, b"\xBB" * 32)], b"\x00" * 4)
        cursor = ByteCursor(data)
        record = read_agile(cursor, registry)
        self.assertTrue(cursor.at_end)
        self.assertEqual(record.pcr_index, 7)
        self.assertEqual(record.get_digest(SHA256), b"\xAA" * 20)
        self.assertEqual(record.get_digest(SHA1), b"\xBB" * 32)
        self.assertEqual(record.event_size, 4)
        self.assertEqual(record.payload, SeparatorEvent())

    def test_unknown_algorithm_fails(self):
        """Test that an unannounced algorithm fails the record"""
        registry = make_registry([(SHA256, 32)])
        data = agile_record(0, EV_SEPARATOR, [(0x0099, b"\x00" * 32)], b"\x00" * 4)
        with self.assertLogs('TcgEventLog.parsers.tcg_parser', level='WARNING'):
            self.assertIsNone(read_agile(ByteCursor(data), registry))

    def test_zero_digests(self):
        """Test a record without digests"""
        registry = make_registry([(SHA256, 32)])
        record = read_agile(ByteCursor(agile_record(1, 0x5, [], b"")), registry)
        self.assertEqual(record.digests, [])
        self.assertEqual(record.payload, RawEvent(b""))

    def test_digests_kept_in_header_order(self):
        """Test that digests are kept in the order of the record"""
        registry = make_registry([(SHA1, 32), (SHA256, 20)])
        data = agile_record(0, EV_SEPARATOR, [(SHA1, b"\x11" * 32), (SHA256, b"\x22" * 20)], b"")
        cursor = ByteCursor(data)
        record = read_agile(cursor, registry)
        self.assertEqual(record.digests, [Digest(SHA1, b"\x11" * 32), Digest(SHA256, b"\x22" * 20)])
        self.assertTrue(cursor.at_end)

    def test_end_of_log_marker(self):
        """Test that the end-of-log marker ends reading"""
        registry = make_registry([(SHA256, 32)])
        data = struct.pack('<II', 0xFFFFFFFF, 0xFFFFFFFF) + b"\x00" * 16
        self.assertIsNone(read_agile(ByteCursor(data), registry))

    def test_truncated_digest(self):
        """Test a record with a truncated digest"""
        registry = make_registry([(SHA256, 32)])
        data = agile_record(0, EV_SEPARATOR, [(SHA256, b"\x00" * 32)], b"")
        self.assertIsNone(read_agile(ByteCursor(data[:30]), registry))

    def test_empty_stream(self):
        """Test reading from an empty stream"""
        self.assertIsNone(read_agile(ByteCursor(b""), make_registry([])))


class TestParseEventLog(unittest.TestCase):
    """Test cases for parse_event_log"""

    def test_bootstrap_and_separator(self):
        """Test a log with the Spec ID record and one separator"""
        data = (spec_id_record([(SHA256, 32)])
                + agile_record(0, EV_SEPARATOR, [(SHA256, b"\x01" * 32)], b"\x00" * 4))
        tcg_log = parse_event_log(data, source_file="boot.tcl")
        self.assertEqual(tcg_log.source_file, "boot.tcl")
        self.assertEqual(tcg_log.registry.size_of(SHA256), 32)
        self.assertEqual(len(tcg_log.events), 1)
        self.assertEqual(tcg_log.events[0].payload, SeparatorEvent())
        self.assertEqual(len(tcg_log.records), 2)
        self.assertEqual(tcg_log.trailing_bytes, 0)

    def test_single_algorithm_log_with_empty_separator(self):
        """Test a single algorithm log with an empty separator"""
        data = (spec_id_record([(SHA256, 20)])
                + agile_record(0, EV_SEPARATOR, [(SHA256, b"Z" * 20)], b""))
        with self.assertLogs('TcgEventLog.core.models', level='WARNING'):
            tcg_log = parse_event_log(data)
        self.assertEqual(len(tcg_log.events), 1)
        event = tcg_log.events[0]
        self.assertEqual(event.payload, SeparatorEvent())
        self.assertEqual(event.event_size, 0)
        self.assertEqual(event.digests, [Digest(SHA256, b"Z" * 20)])
        self.assertEqual(event.digests[0].value, b"Z" * 20)
        self.assertEqual(tcg_log.trailing_bytes, 0)

    def test_bootstrap_only(self):
        """Test a log holding only the Spec ID record"""
        tcg_log = parse_event_log(spec_id_record([(SHA1, 20)]))
        self.assertEqual(tcg_log.events, [])

    def test_truncated_record_keeps_earlier_ones(self):
        """Test that a truncated record keeps the records before it"""
        second = agile_record(1, EV_SEPARATOR, [(SHA256, b"\x02" * 32)], b"\x00" * 4)
        data = (spec_id_record([(SHA256, 32)])
                + agile_record(0, EV_SEPARATOR, [(SHA256, b"\x01" * 32)], b"\x00" * 4)
                + second[:-2])
        tcg_log = parse_event_log(data)
        self.assertEqual(len(tcg_log.events), 1)
        self.assertEqual(tcg_log.trailing_bytes, len(second) - 2)

    def test_stops_at_end_marker(self):
        """Test that decoding stops at the end-of-log marker"""
        tail = (struct.pack('<II', 0xFFFFFFFF, 0xFFFFFFFF)
                + agile_record(1, EV_SEPARATOR, [(SHA256, b"\x01" * 32)], b"\x00" * 4))
        data = (spec_id_record([(SHA256, 32)])
                + agile_record(0, EV_SEPARATOR, [(SHA256, b"\x01" * 32)], b"\x00" * 4)
                + tail)
        tcg_log = parse_event_log(data)
        self.assertEqual(len(tcg_log.events), 1)
        self.assertEqual(tcg_log.trailing_bytes, len(tail))

    def test_pcr_queries(self):
        """Test the PCR and event type queries of a log"""
        data = spec_id_record([(SHA256, 32)])
        for pcr in (4, 0, 4, 7):
            data += agile_record(pcr, EV_SEPARATOR, [(SHA256, b"\x00" * 32)], b"\x00" * 4)
        tcg_log = parse_event_log(data)
        self.assertEqual(tcg_log.get_pcr_indices(), [0, 4, 7])
        self.assertEqual(len(tcg_log.get_events_by_pcr(4)), 2)
        self.assertEqual(tcg_log.get_event_types(), {"EV_SEPARATOR"})

    def test_empty_log(self):
        """Test an empty log"""
        with self.assertRaises(LogFormatError):
            parse_event_log(b"")

    def test_first_record_not_spec_id(self):
        """Test a log whose first record is not a Spec ID event"""
        data = legacy_record(0, EV_SEPARATOR, b"\x00" * 4)
        with self.assertRaises(LogFormatError):
            parse_event_log(data)

    def test_bad_signature(self):
        """Test a Spec ID event with an unsupported signature"""
        data = legacy_record(0, EV_NO_ACTION, spec_id_event_data([(SHA256, 32)], signature=b"Spec ID Event00\x00"))
        with self.assertRaises(LogFormatError):
            parse_event_log(data)

    def test_log_format_error_is_value_error(self):
        """Test that LogFormatError is a ValueError"""
        self.assertTrue(issubclass(LogFormatError, ValueError))


class TestTCGLogParser(unittest.TestCase):
    """Test cases for TCGLogParser"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.log_path = os.path.join(self.temp_dir.name, "binary_bios_measurements")
        data = (spec_id_record([(SHA1, 20), (SHA256, 32)])
                + agile_record(7, EV_SEPARATOR, [(SHA1, b"\x01" * 20), (SHA256, b"\x02" * 32)], b"\x00" * 4))
        with open(self.log_path, 'wb') as f:
            f.write(data)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_parse_file(self):
        """Test parsing a log file"""
        tcg_log = TCGLogParser(self.log_path).parse()
        self.assertEqual(tcg_log.source_file, "binary_bios_measurements")
        self.assertEqual(len(tcg_log.events), 1)
        self.assertEqual(tcg_log.events[0].pcr_index, 7)

    def test_missing_file(self):
        """Test parsing a missing log file"""
        with self.assertRaises(FileNotFoundError):
            TCGLogParser(os.path.join(self.temp_dir.name, "missing")).parse()

    def test_convert_event_to_dict(self):
        """Test the plain data view of a record"""
        tcg_log = TCGLogParser(self.log_path).parse()
        result = TCGLogParser.convert_event_to_dict(tcg_log.events[0])
        self.assertEqual(result['pcr_index'], 7)
        self.assertEqual(result['event_type'], "EV_SEPARATOR")
        self.assertEqual(result['digests'], [{'algorithm': 'sha1', 'value': "01" * 20},
                                             {'algorithm': 'sha256', 'value': "02" * 32}])
        self.assertEqual(result['event'], {'kind': 'separator'})

    def test_convert_spec_record(self):
        """Test the plain data view of the Spec ID record"""
        tcg_log = TCGLogParser(self.log_path).parse()
        result = TCGLogParser.convert_event_to_dict(tcg_log.spec_record)
        self.assertEqual(result['event_type'], "EV_NO_ACTION")
        self.assertEqual(result['event']['kind'], 'spec_id')
        self.assertEqual(result['event']['signature'], "Spec ID Event03")

    def test_convert_unsupported_payload(self):
        """Test converting an unsupported payload"""
        with self.assertRaises(TypeError):
            convert_payload_to_dict(object())

    def test_print_events_summary(self):
        """Test the printed summary of a parsed log"""
        parser = TCGLogParser(self.log_path)
        parser.parse()
        output = io.StringIO()
        with redirect_stdout(output):
            parser.print_events_summary()
        text = output.getvalue()
        self.assertIn(f"TCG Log File: {self.log_path}", text)
        self.assertIn("Spec version: 2.0 errata 0", text)
        self.assertIn("Digest algorithms: sha1 (20 bytes), sha256 (32 bytes)", text)
        self.assertIn("Total events: 1", text)
        self.assertIn("  PCR 7: 1 events", text)
        self.assertIn("  EV_SEPARATOR", text)

    def test_summary_requires_parse(self):
        """Test that the summary requires a parsed log"""
        with self.assertRaises(ValueError):
            TCGLogParser(self.log_path).print_events_summary()


if __name__ == '__main__':
    unittest.main()
