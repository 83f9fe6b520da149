"""
Data models for FillTheForm.

This module contains the configuration items produced by the reader and the
settings that drive it.
"""

from .configuration import ConfigurationItem, ConfigurationSource, SourceDescriptor
from .settings import ReaderSettings, SourceSettings, ParserSettings

__all__ = [
    'ConfigurationItem',
    'ConfigurationSource',
    'SourceDescriptor',
    'ReaderSettings',
    'SourceSettings',
    'ParserSettings'
]
