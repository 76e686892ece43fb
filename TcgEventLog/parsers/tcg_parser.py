#!/usr/bin/env python3
"""
TCG Log Parser for binary TPM event logs

This module decodes the binary event log written by the firmware (for example
/sys/kernel/security/tpm0/binary_bios_measurements on Linux).

The first record always uses the legacy SHA-1 header and carries the Spec ID
event announcing the digest algorithms in use. Every following record uses the
crypto-agile header with one digest per announced algorithm.

Example usage:
    parser = TCGLogParser("path/to/binary_bios_measurements")
    tcg_log = parser.parse()

    # Get all events extending PCR 7
    pcr7_events = tcg_log.get_events_by_pcr(7)
"""

import logging
import os
from typing import Any, Dict, Optional

from ..core.constants import END_OF_LOG_MARKER, SHA1_DIGEST_SIZE, SPEC_ID_SIGNATURE
from ..core.cursor import ByteCursor, BytesLike
from ..core.models import (
    Digest,
    DigestRegistry,
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
from .device_path import UnknownNode, device_path_to_string
from .payloads import decode_agile_payload, decode_legacy_payload

# Set up logging
logger = logging.getLogger(__name__)


class LogFormatError(ValueError):
    """The data does not start with a valid Spec ID event."""


def read_legacy(cursor: ByteCursor) -> Optional[EventRecordLegacy]:
    """
    Read one record with the legacy TCG_PCClientPCREvent header.

    Args:
        cursor: Cursor positioned on the record

    Returns:
        The record, or None if the stream ends before the record does
    """
    header = cursor.unpack(f'<II{SHA1_DIGEST_SIZE}sI')
    if header is None:
        return None
    pcr_index, event_type, digest, event_size = header

    data = cursor.read_bytes(event_size)
    if data is None:
        logger.debug(f"Legacy record declares {event_size} bytes of event data, {cursor.remaining} left")
        return None

    return EventRecordLegacy(
        pcr_index=pcr_index,
        event_type=event_type,
        digest=digest,
        event_size=event_size,
        payload=decode_legacy_payload(pcr_index, event_type, digest, data),
    )


def read_agile(cursor: ByteCursor, registry: DigestRegistry) -> Optional[EventRecordAgile]:
    """
    Read one record with the crypto-agile TCG_PCR_EVENT2 header.

    Args:
        cursor: Cursor positioned on the record
        registry: Digest sizes announced by the Spec ID event

    Returns:
        The record, or None at the end of the stream, on the end-of-log
        marker, on a truncated record or when a digest uses an algorithm that
        the registry does not know (its size, and so the rest of the record,
        cannot be determined)
    """
    header = cursor.unpack('<II')
    if header is None:
        return None
    pcr_index, event_type = header

    if pcr_index == END_OF_LOG_MARKER and event_type == END_OF_LOG_MARKER:
        logger.debug(f"End of log marker at offset {cursor.position - 8}")
        return None

    digest_count = cursor.read_u32()
    if digest_count is None:
        return None

    digests = []
    for _ in range(digest_count):
        algorithm_id = cursor.read_u16()
        if algorithm_id is None:
            return None

        digest_size = registry.size_of(algorithm_id)
        if digest_size is None:
            logger.warning(f"Record for PCR {pcr_index} uses digest algorithm {algorithm_id:#06x} "
                           f"that the Spec ID event does not announce")
            return None

        value = cursor.read_bytes(digest_size)
        if value is None:
            return None
        digests.append(Digest(algorithm_id=algorithm_id, value=value))

    event_size = cursor.read_u32()
    if event_size is None:
        return None

    data = cursor.read_bytes(event_size)
    if data is None:
        logger.debug(f"Record declares {event_size} bytes of event data, {cursor.remaining} left")
        return None

    return EventRecordAgile(
        pcr_index=pcr_index,
        event_type=event_type,
        digests=digests,
        event_size=event_size,
        payload=decode_agile_payload(event_type, data),
    )


def read_spec_record(cursor: ByteCursor) -> EventRecordLegacy:
    """
    Read and validate the first record of a log.

    Args:
        cursor: Cursor positioned at the start of the log

    Returns:
        The bootstrap record; its payload is a SpecIdEvent

    Raises:
        LogFormatError: If the first record is missing, is not a Spec ID event
            or carries an unexpected signature
    """
    record = read_legacy(cursor)
    if record is None:
        raise LogFormatError("Log is too short to contain a Spec ID event")

    if not isinstance(record.payload, SpecIdEvent):
        raise LogFormatError(f"First record (PCR {record.pcr_index}, type {record.event_type:#x}) "
                             f"is not a Spec ID event")

    if not record.payload.signature.startswith(SPEC_ID_SIGNATURE):
        raise LogFormatError(f"Unsupported Spec ID signature {record.payload.signature!r}")

    return record


def parse_event_log(data: BytesLike, source_file: str = "") -> TcgLog:
    """
    Decode a complete binary event log.

    Crypto-agile records are read until the end of the data or the first
    record that cannot be read; everything from the start of that record on
    is counted in ``trailing_bytes``.

    Args:
        data: The raw log
        source_file: Name recorded in the resulting TcgLog

    Returns:
        TcgLog: The bootstrap record, the digest registry and all records
        that could be decoded

    Raises:
        LogFormatError: If the log does not start with a valid Spec ID event
    """
    cursor = ByteCursor(data)

    spec_record = read_spec_record(cursor)
    registry = DigestRegistry.build(spec_record.payload)
    algorithms = ", ".join(f"{entry.algorithm_name} ({entry.digest_size})" for entry in registry)
    logger.info(f"Digest algorithms: {algorithms}")

    tcg_log = TcgLog(spec_record=spec_record, registry=registry, source_file=source_file)

    while True:
        unread = cursor.remaining
        record = read_agile(cursor, registry)
        if record is None:
            tcg_log.trailing_bytes = unread
            break
        tcg_log.events.append(record)

    if tcg_log.trailing_bytes:
        logger.info(f"Stopped after {len(tcg_log.events)} events with "
                    f"{tcg_log.trailing_bytes} bytes left undecoded")

    return tcg_log


class TCGLogParser:
    """Parser for binary TCG event log files."""

    def __init__(self, log_file_path: str):
        """
        Initialize the parser with a path to a binary event log.

        Args:
            log_file_path: Path to the binary event log
        """
        self.log_file_path = log_file_path
        self.tcg_log: Optional[TcgLog] = None

    def parse(self) -> TcgLog:
        """
        Read the log file and decode every record.

        Returns:
            TcgLog: Object containing the decoded records

        Raises:
            FileNotFoundError: If the log file doesn't exist
            LogFormatError: If the file is not a crypto-agile TCG event log
        """
        if not os.path.exists(self.log_file_path):
            raise FileNotFoundError(f"Log file not found: {self.log_file_path}")

        # securityfs reports a size of 0, so read until EOF rather than by size
        with open(self.log_file_path, 'rb') as f:
            data = f.read()

        self.tcg_log = parse_event_log(data, source_file=os.path.basename(self.log_file_path))

        logger.info(f"Parsed {len(self.tcg_log.events)} events from {self.log_file_path}")

        return self.tcg_log

    @staticmethod
    def convert_event_to_dict(record: Any) -> Dict[str, Any]:
        """
        Convert a decoded record to plain data.

        Args:
            record: An EventRecordLegacy or EventRecordAgile

        Returns:
            Dictionary representation of the record using only built-in types
        """
        result: Dict[str, Any] = {
            'pcr_index': record.pcr_index,
            'event_type': record.event_type_name or f"0x{record.event_type:08x}",
            'event_size': record.event_size,
        }

        if isinstance(record, EventRecordLegacy):
            result['digests'] = [{'algorithm': 'sha1', 'value': record.digest.hex()}]
        else:
            result['digests'] = [{'algorithm': d.algorithm_name, 'value': d.value.hex()}
                                 for d in record.digests]

        result['event'] = convert_payload_to_dict(record.payload)
        return result

    def print_events_summary(self) -> None:
        """Print a summary of the parsed events."""
        if self.tcg_log is None:
            raise ValueError("No event log parsed yet. Call parse() first.")

        pcr_counts: Dict[int, int] = {}
        for event in self.tcg_log.events:
            pcr_counts[event.pcr_index] = pcr_counts.get(event.pcr_index, 0) + 1

        spec_event = self.tcg_log.spec_event
        print(f"TCG Log File: {self.log_file_path}")
        print(f"Spec version: {spec_event.spec_version_major}.{spec_event.spec_version_minor} "
              f"errata {spec_event.spec_errata}")
        print("Digest algorithms: " + ", ".join(
            f"{entry.algorithm_name} ({entry.digest_size} bytes)" for entry in self.tcg_log.registry))
        print(f"Total events: {len(self.tcg_log.events)}")

        print("\nEvents per PCR:")
        for pcr, count in sorted(pcr_counts.items()):
            print(f"  PCR {pcr}: {count} events")

        print("\nEvent types found:")
        for event_type in sorted(self.tcg_log.get_event_types()):
            print(f"  {event_type}")


def convert_payload_to_dict(payload: Any) -> Dict[str, Any]:
    """
    Convert a payload variant to plain data.

    Args:
        payload: One of the payload dataclasses

    Returns:
        Dictionary with a 'kind' key naming the variant plus its fields
    """
    if isinstance(payload, SpecIdEvent):
        return {
            'kind': 'spec_id',
            'signature': payload.signature_text,
            'platform_class': payload.platform_class,
            'spec_version': f"{payload.spec_version_major}.{payload.spec_version_minor}.{payload.spec_errata}",
            'uintn_size': payload.uintn_size,
            'digest_sizes': [{'algorithm': entry.algorithm_name, 'algorithm_id': entry.algorithm_id,
                              'digest_size': entry.digest_size} for entry in payload.digest_sizes],
            'vendor_info': payload.vendor_info.hex(),
        }
    if isinstance(payload, ImageLoadEvent):
        return {
            'kind': 'image_load',
            'image_location_in_memory': payload.image_location_in_memory,
            'image_length_in_memory': payload.image_length_in_memory,
            'image_link_time_address': payload.image_link_time_address,
            'device_path_length': payload.device_path_length,
            'device_path': device_path_to_string(payload.device_path),
            'unknown_device_path_nodes': sum(isinstance(node, UnknownNode) for node in payload.device_path),
        }
    if isinstance(payload, VariableEvent):
        return {
            'kind': 'variable',
            'variable_name': str(payload.variable_name),
            'unicode_name': payload.unicode_name,
            'variable_data': payload.variable_data.hex(),
        }
    if isinstance(payload, FirmwareBlobEvent):
        return {'kind': 'firmware_blob', 'blob_base': payload.blob_base, 'blob_length': payload.blob_length}
    if isinstance(payload, VersionedBlobEvent):
        return {
            'kind': 'versioned_blob',
            'blob_description': payload.description_text,
            'blob_base': payload.blob_base,
            'blob_length': payload.blob_length,
        }
    if isinstance(payload, StringEvent):
        return {'kind': 'string', 'text': payload.text}
    if isinstance(payload, SeparatorEvent):
        return {'kind': 'separator'}
    if isinstance(payload, RawEvent):
        return {'kind': 'raw', 'data': payload.data.hex()}
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
