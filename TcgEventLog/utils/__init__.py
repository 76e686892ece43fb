"""
TCG Event Log Utilities Module

This module contains utility functions and helpers used throughout the package.
"""

from .utils import format_guid, is_printable, dashed_hex, encode_utf16

__all__ = ['format_guid', 'is_printable', 'dashed_hex', 'encode_utf16']

__version__ = "2.0.0"
