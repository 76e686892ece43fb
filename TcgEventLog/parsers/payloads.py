"""
Event payload decoders.

Each routine receives a cursor over the isolated event data of one record and
returns a payload dataclass, or None when the data does not fit the expected
layout. :func:`decode_agile_payload` and :func:`decode_legacy_payload` turn a
None into a :class:`RawEvent` holding the untouched bytes, so a payload we
cannot decode never stops the traversal of the log.
"""

import logging
import uuid
from typing import Callable, Dict, Optional

from ..core.constants import SHA1_DIGEST_SIZE, EventType
from ..core.cursor import ByteCursor
from ..core.models import (
    DigestAlgorithmEntry,
    FirmwareBlobEvent,
    ImageLoadEvent,
    Payload,
    RawEvent,
    SeparatorEvent,
    SpecIdEvent,
    StringEvent,
    VariableEvent,
    VersionedBlobEvent,
)
from ..utils.utils import is_printable
from .device_path import parse_device_path

logger = logging.getLogger(__name__)

FIRMWARE_BLOB_SIZE = 16


def is_spec_id_candidate(pcr_index: int, event_type: int, digest: bytes) -> bool:
    """Return True if a legacy header can carry the Spec ID event (PCR 0, EV_NO_ACTION, zero digest)."""
    return (pcr_index == 0
            and event_type == EventType.EV_NO_ACTION
            and len(digest) == SHA1_DIGEST_SIZE
            and not any(digest))


def read_spec_id_event(cursor: ByteCursor) -> Optional[SpecIdEvent]:
    """
    Decode a TCG_EfiSpecIDEvent structure.

    Args:
        cursor: Cursor over the event data of the first record

    Returns:
        The decoded event, or None if the fixed part or the algorithm list is truncated
    """
    header = cursor.unpack('<16sIBBBB')
    if header is None:
        return None
    signature, platform_class, version_minor, version_major, errata, uintn_size = header

    number_of_algorithms = cursor.read_u32()
    if number_of_algorithms is None:
        return None

    digest_sizes = []
    for _ in range(number_of_algorithms):
        pair = cursor.unpack('<HH')
        if pair is None:
            return None
        digest_sizes.append(DigestAlgorithmEntry(algorithm_id=pair[0], digest_size=pair[1]))

    vendor_info_size = cursor.read_u8()
    if vendor_info_size is None:
        return None

    vendor_info = cursor.read_bytes(vendor_info_size)
    if vendor_info is None:
        logger.debug(f"Vendor info truncated: {cursor.remaining} of {vendor_info_size} bytes present")
        vendor_info = cursor.read_remaining()

    return SpecIdEvent(
        signature=signature,
        platform_class=platform_class,
        spec_version_minor=version_minor,
        spec_version_major=version_major,
        spec_errata=errata,
        uintn_size=uintn_size,
        digest_sizes=digest_sizes,
        vendor_info=vendor_info,
    )


def read_string(cursor: ByteCursor) -> Optional[StringEvent]:
    """UTF-16 text up to the first zero code unit or the end of the data."""
    return StringEvent(text=cursor.read_utf16_string())


def read_action(cursor: ByteCursor) -> Optional[StringEvent]:
    """EV_EFI_ACTION carries plain ASCII text without a terminator."""
    data = cursor.read_remaining()
    return StringEvent(text=data.rstrip(b"\x00").decode('ascii', errors='replace'))


def read_firmware_blob(cursor: ByteCursor) -> Optional[FirmwareBlobEvent]:
    fields = cursor.unpack('<QQ')
    if fields is None:
        return None
    return FirmwareBlobEvent(blob_base=fields[0], blob_length=fields[1])


def read_versioned_blob(cursor: ByteCursor) -> Optional[VersionedBlobEvent]:
    description_size = cursor.read_u8()
    if description_size is None:
        return None
    description = cursor.read_bytes(description_size)
    if description is None:
        return None
    fields = cursor.unpack('<QQ')
    if fields is None:
        return None
    return VersionedBlobEvent(blob_description=description, blob_base=fields[0], blob_length=fields[1])


def read_string_or_blob(cursor: ByteCursor) -> Optional[Payload]:
    """
    Decode data that is either printable text or a firmware blob reference.

    Printable data is returned as text. Otherwise a 16 byte buffer is a
    UEFI_PLATFORM_FIRMWARE_BLOB and anything else is read as a
    UEFI_PLATFORM_FIRMWARE_BLOB2; bytes after the blob are ignored.

    Args:
        cursor: Cursor over the whole event data

    Returns:
        A StringEvent, FirmwareBlobEvent or VersionedBlobEvent, or None if
        the data matches none of them
    """
    data = cursor.read_remaining()

    if is_printable(data):
        return StringEvent(text=data.decode('ascii'))

    if len(data) == FIRMWARE_BLOB_SIZE:
        return read_firmware_blob(ByteCursor(data))

    return read_versioned_blob(ByteCursor(data))


def read_image_load(cursor: ByteCursor) -> Optional[ImageLoadEvent]:
    """
    Decode a UEFI_IMAGE_LOAD_EVENT.

    The device path, when its declared length is non-zero, is decoded from
    all remaining event data.
    """
    fields = cursor.unpack('<QQQQ')
    if fields is None:
        return None
    location, length, link_time_address, device_path_length = fields

    event = ImageLoadEvent(
        image_location_in_memory=location,
        image_length_in_memory=length,
        image_link_time_address=link_time_address,
        device_path_length=device_path_length,
    )
    if device_path_length:
        event.device_path = parse_device_path(cursor)
    return event


def read_variable(cursor: ByteCursor) -> Optional[VariableEvent]:
    """
    Decode a UEFI_VARIABLE_DATA structure.

    The name length counts UTF-16 code units, the data length counts bytes.
    """
    fields = cursor.unpack('<16sQQ')
    if fields is None:
        return None
    variable_name, name_length, data_length = fields

    unicode_name = cursor.read_bytes(name_length * 2)
    if unicode_name is None:
        return None
    variable_data = cursor.read_bytes(data_length)
    if variable_data is None:
        return None

    return VariableEvent(
        variable_name=uuid.UUID(bytes_le=variable_name),
        unicode_name=unicode_name.decode('utf-16-le', errors='replace'),
        variable_data=variable_data,
    )


def read_separator(cursor: ByteCursor) -> Optional[SeparatorEvent]:
    return SeparatorEvent()


PAYLOAD_DECODERS: Dict[int, Callable[[ByteCursor], Optional[Payload]]] = {
    EventType.EV_S_CRTM_VERSION: read_string,
    EventType.EV_IPL: read_string,
    EventType.EV_POST_CODE: read_string_or_blob,
    EventType.EV_EFI_HCRTM_EVENT: read_string_or_blob,
    EventType.EV_EFI_PLATFORM_FIRMWARE_BLOB: read_firmware_blob,
    EventType.EV_EFI_PLATFORM_FIRMWARE_BLOB2: read_versioned_blob,
    EventType.EV_EFI_BOOT_SERVICES_APPLICATION: read_image_load,
    EventType.EV_EFI_BOOT_SERVICES_DRIVER: read_image_load,
    EventType.EV_EFI_RUNTIME_SERVICES_DRIVER: read_image_load,
    EventType.EV_EFI_VARIABLE_DRIVER_CONFIG: read_variable,
    EventType.EV_EFI_VARIABLE_BOOT: read_variable,
    EventType.EV_EFI_VARIABLE_BOOT2: read_variable,
    EventType.EV_EFI_VARIABLE_AUTHORITY: read_variable,
    EventType.EV_EFI_ACTION: read_action,
    EventType.EV_SEPARATOR: read_separator,
}


def decode_legacy_payload(pcr_index: int, event_type: int, digest: bytes, data: bytes) -> Payload:
    """
    Decode the event data of a legacy (SHA-1 header) record.

    Only the Spec ID event is decoded; every other legacy record keeps its
    data as a RawEvent.

    Args:
        pcr_index: PCR index from the record header
        event_type: Event type from the record header
        digest: The 20 byte SHA-1 digest from the record header
        data: The isolated event data

    Returns:
        A SpecIdEvent or a RawEvent
    """
    if not is_spec_id_candidate(pcr_index, event_type, digest):
        return RawEvent(data=data)

    event = read_spec_id_event(ByteCursor(data))
    if event is None:
        logger.debug("Event data of the first record is not a valid Spec ID event")
        return RawEvent(data=data)
    return event


def decode_agile_payload(event_type: int, data: bytes) -> Payload:
    """
    Decode the event data of a crypto-agile record based on its event type.

    Args:
        event_type: Event type from the record header
        data: The isolated event data

    Returns:
        The decoded payload, or a RawEvent if the type has no decoder or the
        decoder rejected the data
    """
    decoder = PAYLOAD_DECODERS.get(event_type)
    if decoder is None:
        return RawEvent(data=data)

    payload = decoder(ByteCursor(data))
    if payload is None:
        logger.debug(f"Could not decode {len(data)} bytes of event type {event_type:#x}, keeping raw data")
        return RawEvent(data=data)
    return payload
