#!/usr/bin/env python3
"""
Tests for the digest registry and the event type names.
"""

import os
import sys
import unittest

# Add the repository root to the path for imports
root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if root_dir not in sys.path:
    sys.path.append(root_dir)

from TcgEventLog.core.constants import EventType, HashAlgorithm, event_type_name
from TcgEventLog.core.models import (
    DigestAlgorithmEntry,
    DigestRegistry,
    SpecIdEvent,
    algorithm_name,
    hash_algorithm,
)


def make_spec_event(pairs):
    return SpecIdEvent(
        signature=b"Spec ID Event03\x00",
        platform_class=0,
        spec_version_minor=0,
        spec_version_major=2,
        spec_errata=0,
        uintn_size=2,
        digest_sizes=[DigestAlgorithmEntry(alg, size) for alg, size in pairs],
    )


class TestDigestRegistry(unittest.TestCase):
    """Test cases for DigestRegistry"""

    def test_keeps_declaration_order(self):
        """Test that the registry keeps the announced order"""
        registry = DigestRegistry.build(make_spec_event([(0x000B, 32), (0x0004, 20)]))
        self.assertEqual([entry.algorithm_id for entry in registry], [0x000B, 0x0004])
        self.assertEqual(len(registry), 2)

    def test_size_lookup(self):
        """Test digest size lookup by algorithm id"""
        registry = DigestRegistry.build(make_spec_event([(0x0004, 20), (0x000B, 32)]))
        self.assertEqual(registry.size_of(0x0004), 20)
        self.assertEqual(registry.size_of(0x000B), 32)
        self.assertIsNone(registry.size_of(0x0099))

    def test_duplicate_uses_first_entry(self):
        """Test that a duplicated algorithm uses its first size"""
        registry = DigestRegistry.build(make_spec_event([(0x0004, 32), (0x0004, 20)]))
        self.assertEqual(len(registry), 2)
        self.assertEqual(registry.size_of(0x0004), 32)

    def test_size_mismatch_is_kept_and_logged(self):
        """Test that an unexpected digest size is kept and logged"""
        with self.assertLogs('TcgEventLog.core.models', level='WARNING'):
            registry = DigestRegistry.build(make_spec_event([(0x0004, 32)]))
        self.assertEqual(registry.size_of(0x0004), 32)

    def test_empty_registry(self):
        """Test a Spec ID event announcing no algorithms"""
        registry = DigestRegistry.build(make_spec_event([]))
        self.assertEqual(len(registry), 0)
        self.assertIsNone(registry.size_of(0x0004))


class TestAlgorithmNames(unittest.TestCase):
    """Test cases for algorithm naming"""

    def test_known_algorithms(self):
        """Test the names of known algorithms"""
        self.assertEqual(algorithm_name(HashAlgorithm.SHA1), "sha1")
        self.assertEqual(algorithm_name(HashAlgorithm.SHA256), "sha256")
        self.assertEqual(hash_algorithm(HashAlgorithm.SHA384).digest_size, 48)

    def test_unknown_algorithm(self):
        """Test the name of an unknown algorithm"""
        self.assertIsNone(hash_algorithm(0x0099))
        self.assertEqual(algorithm_name(0x0099), "0x0099")


class TestEventTypeNames(unittest.TestCase):
    """Test cases for event type naming"""

    def test_known_types(self):
        """Test the names of known event types"""
        self.assertEqual(event_type_name(0x4), "EV_SEPARATOR")
        self.assertEqual(event_type_name(0x80000003), "EV_EFI_BOOT_SERVICES_APPLICATION")
        self.assertEqual(event_type_name(EventType.EV_EFI_HCRTM_EVENT), "EV_EFI_HCRTM_EVENT")

    def test_unknown_type(self):
        """Test that unknown event types have no name"""
        self.assertEqual(event_type_name(0x12345678), "")


if __name__ == '__main__':
    unittest.main()
