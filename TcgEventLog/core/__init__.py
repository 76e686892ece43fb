"""
TCG Event Log Core Module

This module contains the byte cursor, the constants and the data models shared
by the decoders.
"""

from .constants import EventType, event_type_name
from .cursor import ByteCursor
from .models import DigestAlgorithmEntry, DigestRegistry, EventRecordAgile, EventRecordLegacy, TcgLog

__all__ = ['ByteCursor', 'DigestRegistry', 'DigestAlgorithmEntry', 'EventRecordLegacy',
           'EventRecordAgile', 'TcgLog', 'EventType', 'event_type_name']
