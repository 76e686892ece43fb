"""
TCG Event Log Decoder Package

This package decodes binary TCG/TPM event logs (the measurement log written by
the firmware during boot) into typed records, including the UEFI device paths
embedded in image load events.
"""

__version__ = "2.0.0"

from .core.cursor import ByteCursor
from .core.models import DigestRegistry, EventRecordAgile, EventRecordLegacy, TcgLog
from .parsers.device_path import device_path_to_string, parse_device_path
from .parsers.tcg_parser import LogFormatError, TCGLogParser, parse_event_log, read_agile, read_legacy

__all__ = [
    # Core models
    'TcgLog', 'EventRecordLegacy', 'EventRecordAgile', 'DigestRegistry', 'ByteCursor',

    # Parsers
    'TCGLogParser', 'LogFormatError', 'parse_event_log', 'read_legacy', 'read_agile',
    'parse_device_path', 'device_path_to_string',
]
