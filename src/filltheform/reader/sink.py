"""
Contract between the XML reader and the object receiving parsed data.
"""

from typing import Protocol

from ..models.configuration import ConfigurationItem
from .errors import ConfigurationReadError


class ConfigurationSink(Protocol):
    """
    Receives packages and configuration items as the reader encounters them.

    Exactly one of ``on_reading_completed`` and ``on_reading_failed`` is called
    per read. Items delivered before a failure are not withdrawn.
    """

    def add_package(self, package: str) -> None:
        """Receive a package identifier."""

    def add_configuration_item(self, item: ConfigurationItem) -> None:
        """Receive a configuration item."""

    def on_reading_completed(self) -> None:
        """Called once the whole document has been read."""

    def on_reading_failed(self, error: ConfigurationReadError) -> None:
        """Called once when the read fails."""
