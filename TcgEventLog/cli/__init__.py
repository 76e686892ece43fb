"""
TCG Event Log CLI Module

This module contains command-line interfaces for the TCG Event Log package.
"""

from . import decode
from . import export_yaml
from . import summary

__all__ = ['decode', 'export_yaml', 'summary']
