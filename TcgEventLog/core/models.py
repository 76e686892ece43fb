"""
Data models for TCG event log decoding.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from cryptography.hazmat.primitives import hashes

from .constants import HashAlgorithm, event_type_name

logger = logging.getLogger(__name__)

_HASH_ALGORITHMS: Dict[int, type] = {
    HashAlgorithm.SHA1: hashes.SHA1,
    HashAlgorithm.SHA256: hashes.SHA256,
    HashAlgorithm.SHA384: hashes.SHA384,
    HashAlgorithm.SHA512: hashes.SHA512,
    HashAlgorithm.SM3_256: hashes.SM3,
    HashAlgorithm.SHA3_256: hashes.SHA3_256,
    HashAlgorithm.SHA3_384: hashes.SHA3_384,
    HashAlgorithm.SHA3_512: hashes.SHA3_512,
}


def hash_algorithm(algorithm_id: int) -> Optional[hashes.HashAlgorithm]:
    """Return the hash algorithm for a TPM_ALG_ID, or None if it is not a known digest."""
    algorithm_class = _HASH_ALGORITHMS.get(algorithm_id)
    return algorithm_class() if algorithm_class else None


def algorithm_name(algorithm_id: int) -> str:
    """Return a printable name for a TPM_ALG_ID (e.g. ``sha256`` or ``0x0099``)."""
    algorithm = hash_algorithm(algorithm_id)
    if algorithm is None:
        return f"0x{algorithm_id:04x}"
    return algorithm.name


@dataclass(frozen=True)
class DigestAlgorithmEntry:
    """One (algorithm, digest size) pair announced by the Spec ID event."""
    algorithm_id: int
    digest_size: int

    @property
    def algorithm_name(self) -> str:
        return algorithm_name(self.algorithm_id)


@dataclass(frozen=True)
class DigestRegistry:
    """
    Ordered digest algorithms in use for one log.

    The order is the declaration order of the Spec ID event and duplicates
    are kept as they are.
    """
    entries: Tuple[DigestAlgorithmEntry, ...] = ()

    @classmethod
    def build(cls, spec_event: 'SpecIdEvent') -> 'DigestRegistry':
        """
        Build the registry from a decoded Spec ID event.

        Args:
            spec_event: The payload of the bootstrap record

        Returns:
            The registry holding the announced algorithm sizes
        """
        for entry in spec_event.digest_sizes:
            algorithm = hash_algorithm(entry.algorithm_id)
            if algorithm is not None and algorithm.digest_size != entry.digest_size:
                logger.warning(f"Log announces {entry.digest_size} byte digests for {algorithm.name}, "
                               f"expected {algorithm.digest_size}")
        return cls(entries=tuple(spec_event.digest_sizes))

    def size_of(self, algorithm_id: int) -> Optional[int]:
        """Return the digest size for an algorithm id, or None if it was never announced."""
        for entry in self.entries:
            if entry.algorithm_id == algorithm_id:
                return entry.digest_size
        return None

    def __iter__(self) -> Iterator[DigestAlgorithmEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class Digest:
    """A single digest of a crypto-agile record."""
    algorithm_id: int
    value: bytes

    @property
    def algorithm_name(self) -> str:
        return algorithm_name(self.algorithm_id)


# Payload variants

@dataclass
class RawEvent:
    """Event data kept verbatim because no structured decoder applied."""
    data: bytes = b""


@dataclass
class SpecIdEvent:
    """TCG_EfiSpecIDEvent, the payload of the bootstrap record."""
    signature: bytes
    platform_class: int
    spec_version_minor: int
    spec_version_major: int
    spec_errata: int
    uintn_size: int
    digest_sizes: List[DigestAlgorithmEntry] = field(default_factory=list)
    vendor_info: bytes = b""

    @property
    def signature_text(self) -> str:
        return self.signature.rstrip(b"\x00").decode('ascii', errors='replace')


@dataclass
class ImageLoadEvent:
    """UEFI_IMAGE_LOAD_EVENT for boot/runtime services applications and drivers."""
    image_location_in_memory: int
    image_length_in_memory: int
    image_link_time_address: int
    device_path_length: int = 0
    device_path: List[Any] = field(default_factory=list)


@dataclass
class VariableEvent:
    """UEFI_VARIABLE_DATA for variable measurements."""
    variable_name: uuid.UUID
    unicode_name: str
    variable_data: bytes = b""


@dataclass
class FirmwareBlobEvent:
    """UEFI_PLATFORM_FIRMWARE_BLOB."""
    blob_base: int
    blob_length: int


@dataclass
class VersionedBlobEvent:
    """UEFI_PLATFORM_FIRMWARE_BLOB2, a firmware blob with a description."""
    blob_description: bytes
    blob_base: int
    blob_length: int

    @property
    def description_text(self) -> str:
        return self.blob_description.decode('ascii', errors='replace')


@dataclass
class StringEvent:
    """Textual event data."""
    text: str = ""


@dataclass
class SeparatorEvent:
    """EV_SEPARATOR; the tag alone carries the meaning."""


Payload = Union[RawEvent, SpecIdEvent, ImageLoadEvent, VariableEvent, FirmwareBlobEvent,
                VersionedBlobEvent, StringEvent, SeparatorEvent]


# Records

@dataclass
class EventRecordLegacy:
    """A TCG_PCClientPCREvent record (SHA-1 only header), used for the first record."""
    pcr_index: int
    event_type: int
    digest: bytes
    event_size: int
    payload: Payload

    @property
    def event_type_name(self) -> str:
        return event_type_name(self.event_type)


@dataclass
class EventRecordAgile:
    """A TCG_PCR_EVENT2 record with one digest per algorithm in use."""
    pcr_index: int
    event_type: int
    digests: List[Digest]
    event_size: int
    payload: Payload

    @property
    def event_type_name(self) -> str:
        return event_type_name(self.event_type)

    def get_digest(self, algorithm_id: int) -> Optional[bytes]:
        """Return the first digest produced with the given algorithm, if any."""
        return next((d.value for d in self.digests if d.algorithm_id == algorithm_id), None)


EventRecord = Union[EventRecordLegacy, EventRecordAgile]


@dataclass
class TcgLog:
    """Class representing a decoded binary TCG event log."""
    spec_record: EventRecordLegacy
    registry: DigestRegistry
    events: List[EventRecordAgile] = field(default_factory=list)
    source_file: str = ""
    trailing_bytes: int = 0  # Bytes left unread when decoding stopped

    @property
    def spec_event(self) -> SpecIdEvent:
        return self.spec_record.payload

    @property
    def records(self) -> List[EventRecord]:
        """Return the bootstrap record followed by every crypto-agile record."""
        return [self.spec_record] + list(self.events)

    def get_events_by_pcr(self, pcr_index: int) -> List[EventRecordAgile]:
        """
        Return all events for a specific PCR index.

        Args:
            pcr_index: The PCR index to filter by

        Returns:
            A list of crypto-agile records extending the given PCR
        """
        return [event for event in self.events if event.pcr_index == pcr_index]

    def get_pcr_indices(self) -> List[int]:
        """Return a sorted list of all PCR indices in the log."""
        return sorted({event.pcr_index for event in self.events})

    def get_event_types(self) -> Set[str]:
        """Return the set of event type names found in the log (hex for unknown types)."""
        return {event.event_type_name or f"0x{event.event_type:08x}" for event in self.events}
