#!/usr/bin/env python3
"""
TCG Event Log Decoder CLI

This script decodes a binary TPM event log and prints every record: the
event type, its digests and the fields of the decoded event data (image load
addresses and device paths, UEFI variables, firmware blobs, strings).

Usage:
    python -m TcgEventLog.cli.decode [log_file] [--verbose]

Example:
    python -m TcgEventLog.cli.decode /sys/kernel/security/tpm0/binary_bios_measurements
    python -m TcgEventLog.cli.decode data/boot.tcl -v

Note:
    Reading the log from securityfs usually requires root privileges.
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from ..core.models import (
    EventRecordAgile,
    EventRecordLegacy,
    FirmwareBlobEvent,
    ImageLoadEvent,
    RawEvent,
    SeparatorEvent,
    SpecIdEvent,
    StringEvent,
    TcgLog,
    VariableEvent,
    VersionedBlobEvent,
)
from ..parsers.device_path import device_path_to_string
from ..parsers.tcg_parser import LogFormatError, TCGLogParser

DEFAULT_LOG_PATH = "/sys/kernel/security/tpm0/binary_bios_measurements"

# Raw event data longer than this is shortened in the text output
TRUNCATE_LENGTH = 64


def setup_logging(verbose=False):
    """Set up logging configuration"""
    log_level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def load_event_log(log_file_path: str, verbose: bool = False) -> Optional[TcgLog]:
    """
    Decode a log file, reporting failures on stdout.

    Args:
        log_file_path: Path to the binary event log
        verbose: Print the traceback of a failure

    Returns:
        The decoded log, or None if the file is missing or not a TCG event log
    """
    try:
        return TCGLogParser(log_file_path).parse()
    except (OSError, LogFormatError) as e:
        print(f"Error: {e}")
        if verbose:
            traceback.print_exc()
        return None


def format_event_type(record) -> str:
    return record.event_type_name or f"0x{record.event_type:08x}"


def format_payload(payload) -> List[str]:
    """
    Render the fields of a decoded payload.

    Args:
        payload: One of the payload dataclasses

    Returns:
        The text lines, each indented with one tab
    """
    if isinstance(payload, SpecIdEvent):
        lines = [
            f"\tSignature: {payload.signature_text}",
            f"\tPlatform class: {payload.platform_class}",
            f"\tSpec version: {payload.spec_version_major}.{payload.spec_version_minor} "
            f"errata {payload.spec_errata}",
            f"\tUINTN size: {payload.uintn_size}",
            "\tAlgorithms:",
        ]
        lines += [f"\t\t- {entry.algorithm_name}: {entry.digest_size} bytes" for entry in payload.digest_sizes]
        if payload.vendor_info:
            lines.append(f"\tVendor info: {payload.vendor_info.hex()}")
        return lines

    if isinstance(payload, ImageLoadEvent):
        return [
            f"\tLocation in memory: 0x{payload.image_location_in_memory:x}",
            f"\tLength in memory: 0x{payload.image_length_in_memory:x}",
            f"\tLink time address: 0x{payload.image_link_time_address:x}",
            f"\tPath: {device_path_to_string(payload.device_path)}",
        ]

    if isinstance(payload, VariableEvent):
        return [
            f"\tVariable GUID: {payload.variable_name}",
            f"\tName: {payload.unicode_name}",
            f"\tData: {payload.variable_data.hex()}",
        ]

    if isinstance(payload, FirmwareBlobEvent):
        return [
            f"\tBlob base: 0x{payload.blob_base:x}",
            f"\tBlob length: 0x{payload.blob_length:x}",
        ]

    if isinstance(payload, VersionedBlobEvent):
        return [
            f"\tBlob description: {payload.description_text}",
            f"\tBlob base: 0x{payload.blob_base:x}",
            f"\tBlob length: 0x{payload.blob_length:x}",
        ]

    if isinstance(payload, StringEvent):
        return [f"\tData: {payload.text}"]

    if isinstance(payload, SeparatorEvent):
        return []

    if isinstance(payload, RawEvent):
        data = payload.data.hex()
        if len(payload.data) > TRUNCATE_LENGTH:
            data = payload.data[:TRUNCATE_LENGTH].hex() + f"... ({len(payload.data)} bytes)"
        return [f"\tData: {data}"] if payload.data else []

    return []


def format_record(record) -> List[str]:
    """
    Render one record as text lines.

    Args:
        record: An EventRecordLegacy or EventRecordAgile

    Returns:
        The header line, the digests and the payload fields
    """
    lines = [f"{format_event_type(record)} (PCR {record.pcr_index}):", "\tDigests:"]

    if isinstance(record, EventRecordLegacy):
        lines.append(f"\t\t- sha1: {record.digest.hex()}")
    elif isinstance(record, EventRecordAgile):
        lines += [f"\t\t- {digest.algorithm_name}: {digest.value.hex()}" for digest in record.digests]

    return lines + format_payload(record.payload)


def main(args=None):
    """Main function to decode and print a TCG event log"""
    parser = argparse.ArgumentParser(
        description='Decode a binary TPM event log and print its records')
    parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                        help=f'Path to the binary event log (default: {DEFAULT_LOG_PATH})')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    parsed_args = parser.parse_args(args)
    setup_logging(parsed_args.verbose)

    tcg_log = load_event_log(parsed_args.log_file, parsed_args.verbose)
    if tcg_log is None:
        return 1

    for record in tcg_log.records:
        for line in format_record(record):
            print(line)

    if tcg_log.trailing_bytes:
        print(f"\n{tcg_log.trailing_bytes} bytes at the end of the log could not be decoded")

    return 0


if __name__ == "__main__":
    sys.exit(main())
