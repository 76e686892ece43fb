"""
Utility functions for TCG event log decoding and rendering.
"""

import uuid
from typing import Union


def format_guid(value: Union[bytes, uuid.UUID]) -> str:
    """
    Format an EFI GUID in registry form, e.g. ``{8BE4DF61-93CA-11D2-AA0D-00E098032B8C}``.

    Args:
        value: Either a UUID or the 16 raw bytes of an EFI_GUID (mixed endian)

    Returns:
        The braced, upper case GUID string
    """
    if not isinstance(value, uuid.UUID):
        value = uuid.UUID(bytes_le=bytes(value))
    return "{" + str(value).upper() + "}"


def is_printable(data: bytes) -> bool:
    """Return True if every byte is a printable ASCII character (0x20-0x7E)."""
    return all(0x20 <= byte <= 0x7E for byte in data)


def dashed_hex(data: bytes) -> str:
    """Return upper case hex bytes joined by dashes, e.g. ``00-1B-44-11``."""
    return "-".join(f"{byte:02X}" for byte in data)


def encode_utf16(text: str, terminate: bool = True) -> bytes:
    """
    Encode a string as UTF-16LE.

    Args:
        text: The string to encode
        terminate: Append a zero code unit

    Returns:
        The encoded bytes
    """
    encoded = text.encode('utf-16-le')
    return encoded + b'\x00\x00' if terminate else encoded
