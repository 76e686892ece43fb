"""
EFI Device Path decoder.

A device path is a sequence of nodes, each starting with a four byte header
(type, sub-type, total length) and terminated by an End Entire Device Path
node. The declared length of a node is always honoured: the body is isolated
before decoding, so a node we cannot interpret (or that is shorter than its
structure) is kept as an :class:`UnknownNode` and decoding resumes at the
next node.

Reference: UEFI Specification, chapter 10 "Device Path Protocol".
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, List, Optional, Tuple, Union

from ..core.constants import (
    ACPI_CONTAINER_0A05_HID,
    ACPI_CONTAINER_0A06_HID,
    ACPI_EC_HID,
    ACPI_FLOPPY_HID,
    ACPI_KEYBOARD_HID,
    ACPI_PCI_ROOT_HID,
    ACPI_PCIE_ROOT_HID,
    ACPI_SERIAL_HID,
    DEVICE_PATH_HEADER_SIZE,
    END_ENTIRE_DEVICE_PATH,
    SIGNATURE_TYPE_GUID,
    SIGNATURE_TYPE_MBR,
    AcpiSubType,
    DevicePathType,
    HardwareSubType,
    MediaSubType,
    MessagingSubType,
)
from ..core.cursor import ByteCursor
from ..utils.utils import dashed_hex, encode_utf16, format_guid

logger = logging.getLogger(__name__)

_NODE_HEADER = struct.Struct('<BBH')

AcpiId = Union[int, str]


@dataclass
class DevicePathNode:
    """Base class of the decoded (structured) device path nodes."""
    node_type: ClassVar[int]
    node_sub_type: ClassVar[int]

    def body(self) -> bytes:
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        """Return the wire encoding of the node, header included."""
        body = self.body()
        return _NODE_HEADER.pack(self.node_type, self.node_sub_type,
                                 DEVICE_PATH_HEADER_SIZE + len(body)) + body

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class UnknownNode:
    """A node we do not decode; only the header is retained."""
    node_type: int
    sub_type: int
    length: int

    def to_string(self) -> str:
        return f"\\Unknown({self.node_type:x}, {self.sub_type:x})"


# Hardware device paths

@dataclass
class PciNode(DevicePathNode):
    node_type = DevicePathType.HARDWARE
    node_sub_type = HardwareSubType.PCI

    function: int
    device: int

    def body(self) -> bytes:
        return struct.pack('<BB', self.function, self.device)

    def to_string(self) -> str:
        return f"\\Pci(0x{self.device:x}, 0x{self.function:x})"


@dataclass
class MemoryMappedNode(DevicePathNode):
    node_type = DevicePathType.HARDWARE
    node_sub_type = HardwareSubType.MEMORY_MAPPED

    memory_type: int
    start_address: int
    end_address: int

    def body(self) -> bytes:
        return struct.pack('<IQQ', self.memory_type, self.start_address, self.end_address)

    def to_string(self) -> str:
        return f"\\MemoryMapped({self.memory_type}, 0x{self.start_address:x}, 0x{self.end_address:x})"


# ACPI device paths

@dataclass
class AcpiNode(DevicePathNode):
    node_type = DevicePathType.ACPI
    node_sub_type = AcpiSubType.ACPI

    hid: int
    uid: int

    def body(self) -> bytes:
        return struct.pack('<II', self.hid, self.uid)

    def to_string(self) -> str:
        if self.hid == ACPI_PCI_ROOT_HID:
            return f"\\PciRoot(0x{self.uid:x})"
        if self.hid in (ACPI_CONTAINER_0A05_HID, ACPI_CONTAINER_0A06_HID):
            return "\\AcpiContainer()"
        if self.hid == ACPI_PCIE_ROOT_HID:
            return f"\\PcieRoot(0x{self.uid:x})"
        if self.hid == ACPI_EC_HID:
            return "\\EmbeddedController()"
        if self.hid == ACPI_FLOPPY_HID:
            return f"\\Floppy(0x{self.uid:x})"
        if self.hid == ACPI_KEYBOARD_HID:
            return f"\\Keyboard(0x{self.uid:x})"
        if self.hid == ACPI_SERIAL_HID:
            return f"\\Serial(0x{self.uid:x})"
        return f"\\Acpi(0x{self.hid:08x},0x{self.uid:x})"


def _format_acpi_id(value: AcpiId) -> str:
    return value if isinstance(value, str) else f"0x{value:x}"


@dataclass
class ExtendedAcpiNode(DevicePathNode):
    """
    Expanded ACPI node; each id is the numeric value unless its string form was present.

    ``numeric_ids`` keeps the three numeric fields as read, so an id replaced
    by its string still encodes to the original bytes.
    """
    node_type = DevicePathType.ACPI
    node_sub_type = AcpiSubType.EXTENDED_ACPI

    hid: AcpiId
    uid: AcpiId
    cid: AcpiId
    numeric_ids: Tuple[int, int, int] = field(default=(0, 0, 0), compare=False)

    def body(self) -> bytes:
        ids = (self.hid, self.uid, self.cid)
        numbers = struct.pack('<III', *(numeric if isinstance(value, str) else value
                                        for value, numeric in zip(ids, self.numeric_ids)))
        strings = b"".join(encode_utf16(value if isinstance(value, str) else "") for value in ids)
        return numbers + strings

    def to_string(self) -> str:
        return (f"\\AcpiExp({_format_acpi_id(self.hid)}, {_format_acpi_id(self.uid)}, "
                f"{_format_acpi_id(self.cid)})")


# Messaging device paths

@dataclass
class UsbNode(DevicePathNode):
    node_type = DevicePathType.MESSAGING
    node_sub_type = MessagingSubType.USB

    parent_port: int
    interface: int

    def body(self) -> bytes:
        return struct.pack('<BB', self.parent_port, self.interface)

    def to_string(self) -> str:
        return f"\\USB({self.parent_port}, {self.interface})"


@dataclass
class LunNode(DevicePathNode):
    node_type = DevicePathType.MESSAGING
    node_sub_type = MessagingSubType.LUN

    lun: int

    def body(self) -> bytes:
        return struct.pack('<B', self.lun)

    def to_string(self) -> str:
        return f"\\Unit({self.lun})"


@dataclass
class SataNode(DevicePathNode):
    node_type = DevicePathType.MESSAGING
    node_sub_type = MessagingSubType.SATA

    hba_port: int
    port_multiplier_port: int
    logical_unit_number: int

    def body(self) -> bytes:
        return struct.pack('<HHH', self.hba_port, self.port_multiplier_port, self.logical_unit_number)

    def to_string(self) -> str:
        return f"\\Sata({self.hba_port}, {self.port_multiplier_port}, {self.logical_unit_number})"


@dataclass
class NvmeNamespaceNode(DevicePathNode):
    node_type = DevicePathType.MESSAGING
    node_sub_type = MessagingSubType.NVME_NAMESPACE

    namespace_identifier: int
    extended_unique_identifier: bytes

    def body(self) -> bytes:
        return struct.pack('<I', self.namespace_identifier) + self.extended_unique_identifier

    def to_string(self) -> str:
        return f"\\NVMe(0x{self.namespace_identifier:x}, {dashed_hex(self.extended_unique_identifier)})"


# Media device paths

@dataclass
class HardDriveNode(DevicePathNode):
    node_type = DevicePathType.MEDIA
    node_sub_type = MediaSubType.HARD_DRIVE

    partition_number: int
    partition_start: int
    partition_size: int
    signature: bytes
    partition_format: int
    signature_type: int

    def body(self) -> bytes:
        return (struct.pack('<IQQ', self.partition_number, self.partition_start, self.partition_size)
                + self.signature
                + struct.pack('<BB', self.partition_format, self.signature_type))

    def to_string(self) -> str:
        if self.signature_type == SIGNATURE_TYPE_MBR:
            (mbr_signature,) = struct.unpack_from('<I', self.signature)
            return (f"\\HD({self.partition_number},MBR,0x{mbr_signature:x},"
                    f"0x{self.partition_start:x},0x{self.partition_size:x})")
        if self.signature_type == SIGNATURE_TYPE_GUID:
            return (f"\\HD({self.partition_number},GPT,{format_guid(self.signature)},"
                    f"0x{self.partition_start:x},0x{self.partition_size:x})")
        return (f"\\HD({self.partition_number},{self.signature_type},"
                f"0x{self.partition_start:x},0x{self.partition_size:x})")


@dataclass
class FilePathNode(DevicePathNode):
    node_type = DevicePathType.MEDIA
    node_sub_type = MediaSubType.FILE_PATH

    path: str

    def body(self) -> bytes:
        return encode_utf16(self.path)

    def to_string(self) -> str:
        return self.path


@dataclass
class FirmwareFileNode(DevicePathNode):
    node_type = DevicePathType.MEDIA
    node_sub_type = MediaSubType.PIWG_FIRMWARE_FILE

    firmware_file_name: bytes

    def body(self) -> bytes:
        return self.firmware_file_name

    def to_string(self) -> str:
        return f"\\FvFile({format_guid(self.firmware_file_name)})"


@dataclass
class FirmwareVolumeNode(DevicePathNode):
    node_type = DevicePathType.MEDIA
    node_sub_type = MediaSubType.PIWG_FIRMWARE_VOLUME

    firmware_volume_name: bytes

    def body(self) -> bytes:
        return self.firmware_volume_name

    def to_string(self) -> str:
        return f"\\FvVol({format_guid(self.firmware_volume_name)})"


@dataclass
class RelativeOffsetRangeNode(DevicePathNode):
    node_type = DevicePathType.MEDIA
    node_sub_type = MediaSubType.RELATIVE_OFFSET_RANGE

    reserved: int
    starting_offset: int
    ending_offset: int

    def body(self) -> bytes:
        return struct.pack('<IQQ', self.reserved, self.starting_offset, self.ending_offset)

    def to_string(self) -> str:
        return f"\\Offset(0x{self.starting_offset:x}, 0x{self.ending_offset:x})"


Node = Union[DevicePathNode, UnknownNode]


# Node body decoders. Each returns None when the body is too short.

def _decode_pci(body: ByteCursor) -> Optional[PciNode]:
    fields = body.unpack('<BB')
    return PciNode(*fields) if fields else None


def _decode_memory_mapped(body: ByteCursor) -> Optional[MemoryMappedNode]:
    fields = body.unpack('<IQQ')
    return MemoryMappedNode(*fields) if fields else None


def _decode_acpi(body: ByteCursor) -> Optional[AcpiNode]:
    fields = body.unpack('<II')
    return AcpiNode(*fields) if fields else None


def _decode_extended_acpi(body: ByteCursor) -> Optional[ExtendedAcpiNode]:
    fields = body.unpack('<III')
    if fields is None:
        return None
    ids: List[AcpiId] = list(fields)
    # HIDSTR, UIDSTR and CIDSTR follow in that order; an empty string keeps the number
    for index in range(3):
        text = body.read_utf16_string()
        if text:
            ids[index] = text
    return ExtendedAcpiNode(*ids, numeric_ids=fields)


def _decode_usb(body: ByteCursor) -> Optional[UsbNode]:
    fields = body.unpack('<BB')
    return UsbNode(*fields) if fields else None


def _decode_lun(body: ByteCursor) -> Optional[LunNode]:
    fields = body.unpack('<B')
    return LunNode(*fields) if fields else None


def _decode_sata(body: ByteCursor) -> Optional[SataNode]:
    fields = body.unpack('<HHH')
    return SataNode(*fields) if fields else None


def _decode_nvme_namespace(body: ByteCursor) -> Optional[NvmeNamespaceNode]:
    fields = body.unpack('<I8s')
    return NvmeNamespaceNode(*fields) if fields else None


def _decode_hard_drive(body: ByteCursor) -> Optional[HardDriveNode]:
    fields = body.unpack('<IQQ16sBB')
    return HardDriveNode(*fields) if fields else None


def _decode_file_path(body: ByteCursor) -> Optional[FilePathNode]:
    return FilePathNode(body.read_utf16_string())


def _decode_firmware_file(body: ByteCursor) -> Optional[FirmwareFileNode]:
    fields = body.unpack('<16s')
    return FirmwareFileNode(*fields) if fields else None


def _decode_firmware_volume(body: ByteCursor) -> Optional[FirmwareVolumeNode]:
    fields = body.unpack('<16s')
    return FirmwareVolumeNode(*fields) if fields else None


def _decode_relative_offset_range(body: ByteCursor) -> Optional[RelativeOffsetRangeNode]:
    fields = body.unpack('<IQQ')
    return RelativeOffsetRangeNode(*fields) if fields else None


NODE_DECODERS: Dict[Tuple[int, int], Callable[[ByteCursor], Optional[DevicePathNode]]] = {
    (DevicePathType.HARDWARE, HardwareSubType.PCI): _decode_pci,
    (DevicePathType.HARDWARE, HardwareSubType.MEMORY_MAPPED): _decode_memory_mapped,
    (DevicePathType.ACPI, AcpiSubType.ACPI): _decode_acpi,
    (DevicePathType.ACPI, AcpiSubType.EXTENDED_ACPI): _decode_extended_acpi,
    (DevicePathType.MESSAGING, MessagingSubType.USB): _decode_usb,
    (DevicePathType.MESSAGING, MessagingSubType.LUN): _decode_lun,
    (DevicePathType.MESSAGING, MessagingSubType.SATA): _decode_sata,
    (DevicePathType.MESSAGING, MessagingSubType.NVME_NAMESPACE): _decode_nvme_namespace,
    (DevicePathType.MEDIA, MediaSubType.HARD_DRIVE): _decode_hard_drive,
    (DevicePathType.MEDIA, MediaSubType.FILE_PATH): _decode_file_path,
    (DevicePathType.MEDIA, MediaSubType.PIWG_FIRMWARE_FILE): _decode_firmware_file,
    (DevicePathType.MEDIA, MediaSubType.PIWG_FIRMWARE_VOLUME): _decode_firmware_volume,
    (DevicePathType.MEDIA, MediaSubType.RELATIVE_OFFSET_RANGE): _decode_relative_offset_range,
}


def parse_device_path(cursor: ByteCursor) -> List[Node]:
    """
    Decode device path nodes until the end marker or the end of the buffer.

    Args:
        cursor: Cursor positioned on the first node header

    Returns:
        The decoded nodes in stream order, without the end marker. Decoding
        stops early (keeping what was decoded) on a truncated header or a
        node whose declared length does not fit in the buffer.
    """
    nodes: List[Node] = []

    while not cursor.at_end:
        header = cursor.read_bytes(DEVICE_PATH_HEADER_SIZE)
        if header is None:
            logger.debug(f"Truncated device path node header ({cursor.remaining} bytes left)")
            break

        node_type, sub_type, length = _NODE_HEADER.unpack(header)

        if node_type == DevicePathType.END and sub_type == END_ENTIRE_DEVICE_PATH:
            break

        body = None
        if length >= DEVICE_PATH_HEADER_SIZE:
            body = cursor.sub_cursor(length - DEVICE_PATH_HEADER_SIZE)
        if body is None:
            logger.debug(f"Device path node ({node_type:#x}, {sub_type:#x}) declares length {length}, "
                         f"{cursor.remaining} bytes left")
            break

        decoder = NODE_DECODERS.get((node_type, sub_type))
        node = decoder(body) if decoder else None

        if node is None:
            if decoder:
                logger.debug(f"Device path node ({node_type:#x}, {sub_type:#x}) too short: {length} bytes")
            node = UnknownNode(node_type=node_type, sub_type=sub_type, length=length)

        nodes.append(node)

    return nodes


def device_path_to_string(nodes: List[Node]) -> str:
    """Return the text form of a device path: the concatenated text of its nodes."""
    return "".join(node.to_string() for node in nodes)


def encode_device_path(nodes: List[DevicePathNode]) -> bytes:
    """
    Encode structured nodes followed by an End Entire Device Path node.

    Args:
        nodes: Nodes to encode; unknown nodes cannot be encoded

    Returns:
        The device path bytes
    """
    end = _NODE_HEADER.pack(DevicePathType.END, END_ENTIRE_DEVICE_PATH, DEVICE_PATH_HEADER_SIZE)
    return b"".join(node.to_bytes() for node in nodes) + end
