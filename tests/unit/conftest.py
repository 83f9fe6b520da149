"""
Shared fixtures for FillTheForm unit tests.
"""

from typing import Any, List, Tuple

import pytest

from filltheform.models.configuration import ConfigurationItem
from filltheform.reader.errors import ConfigurationReadError


class RecordingSink:
    """ConfigurationSink test double that records every call in order."""

    def __init__(self):
        self.calls: List[Tuple[Any, ...]] = []

    def add_package(self, package: str) -> None:
        self.calls.append(("package", package))

    def add_configuration_item(self, item: ConfigurationItem) -> None:
        self.calls.append(("item", item))

    def on_reading_completed(self) -> None:
        self.calls.append(("completed",))

    def on_reading_failed(self, error: ConfigurationReadError) -> None:
        self.calls.append(("failed", error))

    @property
    def packages(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "package"]

    @property
    def items(self) -> List[ConfigurationItem]:
        return [call[1] for call in self.calls if call[0] == "item"]

    @property
    def terminal_calls(self) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in ("completed", "failed")]

    @property
    def error(self) -> ConfigurationReadError:
        failures = [call[1] for call in self.calls if call[0] == "failed"]
        assert len(failures) == 1
        return failures[0]


@pytest.fixture
def sink():
    """Fresh recording sink."""
    return RecordingSink()
