"""
Errors raised while reading a configuration file.

Every failure of a read is one of three kinds. The reader never lets these
escape to its caller; they are handed to the sink's ``on_reading_failed``.
"""

from enum import Enum


class ErrorKind(Enum):
    """Failure kinds of a configuration read."""
    INVALID_ARGUMENT = "invalid_argument"
    IO_FAILURE = "io_failure"
    MALFORMED_DOCUMENT = "malformed_document"


class ConfigurationReadError(Exception):
    """Base class for configuration read failures."""

    kind: ErrorKind

    def describe(self) -> str:
        """Get the failure description including the error type."""
        return f"{self.__class__.__name__}: {self}"


class InvalidArgumentError(ConfigurationReadError):
    """Raised when a read is requested with an invalid source or path."""
    kind = ErrorKind.INVALID_ARGUMENT


class IOFailureError(ConfigurationReadError):
    """Raised when the configuration source cannot be opened or read."""
    kind = ErrorKind.IO_FAILURE


class MalformedDocumentError(ConfigurationReadError):
    """Raised when the configuration document cannot be tokenized."""
    kind = ErrorKind.MALFORMED_DOCUMENT
