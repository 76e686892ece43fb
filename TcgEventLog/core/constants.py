"""
Constants for TCG event log decoding.

Event types come from the TCG PC Client Platform Firmware Profile, algorithm
identifiers from the TCG Algorithm Registry and device path types from the
UEFI specification (chapter 10, Device Path Protocol).
"""

import enum
from types import MappingProxyType
from typing import Mapping


class EventType(enum.IntEnum):
    """Event types that can appear in a TCG event log."""
    EV_PREBOOT_CERT = 0x0
    EV_POST_CODE = 0x1
    EV_UNUSED = 0x2
    EV_NO_ACTION = 0x3
    EV_SEPARATOR = 0x4
    EV_ACTION = 0x5
    EV_EVENT_TAG = 0x6
    EV_S_CRTM_CONTENTS = 0x7
    EV_S_CRTM_VERSION = 0x8
    EV_CPU_MICROCODE = 0x9
    EV_PLATFORM_CONFIG_FLAGS = 0xA
    EV_TABLE_OF_DEVICES = 0xB
    EV_COMPACT_HASH = 0xC
    EV_IPL = 0xD
    EV_IPL_PARTITION_DATA = 0xE
    EV_NONHOST_CODE = 0xF
    EV_NONHOST_CONFIG = 0x10
    EV_NONHOST_INFO = 0x11
    EV_OMIT_BOOT_DEVICE_EVENTS = 0x12
    EV_EFI_VARIABLE_DRIVER_CONFIG = 0x80000001
    EV_EFI_VARIABLE_BOOT = 0x80000002
    EV_EFI_BOOT_SERVICES_APPLICATION = 0x80000003
    EV_EFI_BOOT_SERVICES_DRIVER = 0x80000004
    EV_EFI_RUNTIME_SERVICES_DRIVER = 0x80000005
    EV_EFI_GPT_EVENT = 0x80000006
    EV_EFI_ACTION = 0x80000007
    EV_EFI_PLATFORM_FIRMWARE_BLOB = 0x80000008
    EV_EFI_HANDOFF_TABLES = 0x80000009
    EV_EFI_PLATFORM_FIRMWARE_BLOB2 = 0x8000000A
    EV_EFI_HANDOFF_TABLES2 = 0x8000000B
    EV_EFI_VARIABLE_BOOT2 = 0x8000000C
    EV_EFI_HCRTM_EVENT = 0x80000010
    EV_EFI_VARIABLE_AUTHORITY = 0x800000E0
    EV_EFI_SPDM_FIRMWARE_BLOB = 0x800000E1
    EV_EFI_SPDM_FIRMWARE_CONFIG = 0x800000E2


# Built once at import time and never modified afterwards
EVENT_TYPE_NAMES: Mapping[int, str] = MappingProxyType(
    {member.value: member.name for member in EventType}
)


def event_type_name(event_type: int) -> str:
    """
    Return the symbolic name of an event type.

    Args:
        event_type: The numeric event type from a record header

    Returns:
        The name (e.g. ``EV_SEPARATOR``) or an empty string for unknown tags
    """
    return EVENT_TYPE_NAMES.get(event_type, "")


# Record layout
SHA1_DIGEST_SIZE = 20
SPEC_ID_SIGNATURE = b"Spec ID Event03"
END_OF_LOG_MARKER = 0xFFFFFFFF


class HashAlgorithm(enum.IntEnum):
    """TPM_ALG_ID values for the digest algorithms used in event logs."""
    SHA1 = 0x0004
    SHA256 = 0x000B
    SHA384 = 0x000C
    SHA512 = 0x000D
    SM3_256 = 0x0012
    SHA3_256 = 0x0027
    SHA3_384 = 0x0028
    SHA3_512 = 0x0029


class DevicePathType(enum.IntEnum):
    HARDWARE = 0x01
    ACPI = 0x02
    MESSAGING = 0x03
    MEDIA = 0x04
    BIOS_BOOT = 0x05
    END = 0x7F


class HardwareSubType(enum.IntEnum):
    PCI = 0x01
    PCCARD = 0x02
    MEMORY_MAPPED = 0x03
    VENDOR = 0x04
    CONTROLLER = 0x05
    BMC = 0x06


class AcpiSubType(enum.IntEnum):
    ACPI = 0x01
    EXTENDED_ACPI = 0x02
    ADR = 0x03
    NVDIMM = 0x04


class MessagingSubType(enum.IntEnum):
    USB = 0x05
    LUN = 0x11
    SATA = 0x12
    NVME_NAMESPACE = 0x17


class MediaSubType(enum.IntEnum):
    HARD_DRIVE = 0x01
    CDROM = 0x02
    VENDOR = 0x03
    FILE_PATH = 0x04
    MEDIA_PROTOCOL = 0x05
    PIWG_FIRMWARE_FILE = 0x06
    PIWG_FIRMWARE_VOLUME = 0x07
    RELATIVE_OFFSET_RANGE = 0x08


END_ENTIRE_DEVICE_PATH = 0xFF
END_INSTANCE_DEVICE_PATH = 0x01
DEVICE_PATH_HEADER_SIZE = 4

# Hard drive node signature types
SIGNATURE_TYPE_NONE = 0x00
SIGNATURE_TYPE_MBR = 0x01
SIGNATURE_TYPE_GUID = 0x02

# Compressed EISA ids of the ACPI devices with a dedicated text form
ACPI_PCI_ROOT_HID = 0x0A0341D0
ACPI_CONTAINER_0A05_HID = 0x0A0541D0
ACPI_CONTAINER_0A06_HID = 0x0A0641D0
ACPI_PCIE_ROOT_HID = 0x0A0841D0
ACPI_EC_HID = 0x0C0941D0
ACPI_FLOPPY_HID = 0x060441D0
ACPI_KEYBOARD_HID = 0x030141D0
ACPI_SERIAL_HID = 0x050141D0
