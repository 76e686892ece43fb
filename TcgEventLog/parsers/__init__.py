"""
TCG Event Log Parsers Module

This module contains the record reader and log driver, the event payload
decoders and the EFI device path decoder.
"""

from .device_path import device_path_to_string, encode_device_path, parse_device_path
from .payloads import decode_agile_payload, decode_legacy_payload
from .tcg_parser import LogFormatError, TCGLogParser, parse_event_log, read_agile, read_legacy

__all__ = ['TCGLogParser', 'LogFormatError', 'parse_event_log', 'read_legacy', 'read_agile',
           'decode_agile_payload', 'decode_legacy_payload', 'parse_device_path',
           'device_path_to_string', 'encode_device_path']
