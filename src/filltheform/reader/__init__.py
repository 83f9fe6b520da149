"""
Configuration file reading for FillTheForm.

This package opens configuration sources, scans the XML document and hands
packages, items and the outcome of the read to a ConfigurationSink.
"""

from .classifier import is_grouping_tag
from .errors import (
    ErrorKind,
    ConfigurationReadError,
    InvalidArgumentError,
    IOFailureError,
    MalformedDocumentError
)
from .sink import ConfigurationSink
from .sources import SourceResolver
from .xml_reader import (
    CONFIGURATION_VARIABLE_PATTERN,
    ProfileContext,
    ProfileState,
    XmlConfigurationFileReader
)

__all__ = [
    'is_grouping_tag',
    'ErrorKind',
    'ConfigurationReadError',
    'InvalidArgumentError',
    'IOFailureError',
    'MalformedDocumentError',
    'ConfigurationSink',
    'SourceResolver',
    'CONFIGURATION_VARIABLE_PATTERN',
    'ProfileContext',
    'ProfileState',
    'XmlConfigurationFileReader'
]
