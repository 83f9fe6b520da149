"""
In-memory configuration store for FillTheForm.

ServiceConfiguration is the production sink of the XML reader. It collects
the packages the form filler is active for and the configuration items of
every profile, and resolves ``&name;`` placeholders in item values.
"""

import logging
import re
from enum import Enum
from typing import Dict, List, Optional, Any, Union

from ..config.loader import load_settings
from ..models.configuration import ConfigurationItem, ConfigurationSource
from ..models.settings import ReaderSettings
from ..reader.errors import ConfigurationReadError
from ..reader.xml_reader import CONFIGURATION_VARIABLE_PATTERN, XmlConfigurationFileReader


class ReadingState(Enum):
    """Outcome of the last configuration read."""
    NOT_STARTED = "not_started"
    COMPLETED = "completed"
    FAILED = "failed"


class ServiceConfiguration:
    """
    Configuration store filled by the XML reader.

    Packages and items are kept in the order they were read. Items delivered
    before a failed read are kept.
    """

    def __init__(self, variable_pattern: str = CONFIGURATION_VARIABLE_PATTERN):
        """
        Initialize an empty configuration.

        Args:
            variable_pattern: Regex for placeholders, group 1 is the referenced key
        """
        self._variable_pattern = re.compile(variable_pattern)
        self._packages: List[str] = []
        self._items: List[ConfigurationItem] = []
        self.state = ReadingState.NOT_STARTED
        self.failure: Optional[ConfigurationReadError] = None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def packages(self) -> List[str]:
        return list(self._packages)

    @property
    def items(self) -> List[ConfigurationItem]:
        return list(self._items)

    @property
    def failure_reason(self) -> Optional[str]:
        return str(self.failure) if self.failure is not None else None

    def add_package(self, package: str) -> None:
        """Add a package, ignoring blanks and duplicates."""
        package = package.strip()
        if not package:
            self.logger.warning("Ignoring empty package entry")
            return
        if package not in self._packages:
            self._packages.append(package)

    def add_configuration_item(self, item: ConfigurationItem) -> None:
        self._items.append(item)

    def on_reading_completed(self) -> None:
        self.state = ReadingState.COMPLETED
        self.failure = None
        self.logger.info(
            f"Configuration loaded: {len(self._packages)} packages, "
            f"{len(self._items)} items, {len(self.get_profiles())} profiles"
        )

    def on_reading_failed(self, error: ConfigurationReadError) -> None:
        self.state = ReadingState.FAILED
        self.failure = error
        self.logger.warning(f"Configuration reading failed ({error.kind.value}): {error}")

    def is_completed(self) -> bool:
        return self.state is ReadingState.COMPLETED

    def is_package_supported(self, package: str) -> bool:
        """Check if the form filler is configured for a package."""
        return package.strip() in self._packages

    def get_profiles(self) -> List[str]:
        """Get the names of all profiles in document order."""
        profiles: List[str] = []
        for item in self._items:
            if item.profile is not None and item.profile not in profiles:
                profiles.append(item.profile)
        return profiles

    def get_items_for_profile(self, profile: Optional[str]) -> List[ConfigurationItem]:
        """Get the items of a profile, or the profile-less items for None."""
        return [item for item in self._items if item.profile == profile]

    def find_item(self, key: str, profile: Optional[str] = None) -> Optional[ConfigurationItem]:
        """
        Find the first item with a key (case-insensitive) in a profile.

        Args:
            key: Item key to look up
            profile: Profile to search, None for profile-less items

        Returns:
            The matching item or None
        """
        for item in self._items:
            if item.profile == profile and item.matches_key(key):
                return item
        return None

    def resolve_variables(self, value: str, profile: Optional[str] = None) -> str:
        """
        Replace ``&name;`` placeholders with the values of other items.

        A placeholder refers to the item with that key in the same profile,
        falling back to a profile-less item. Unknown placeholders are kept.
        Substitution is a single pass; values inserted are not resolved again.

        Args:
            value: Text that may contain placeholders
            profile: Profile the text belongs to

        Returns:
            Text with known placeholders replaced
        """
        def substitute(match: "re.Match[str]") -> str:
            key = match.group(1)
            item = self.find_item(key, profile)
            if item is None and profile is not None:
                item = self.find_item(key)
            if item is None:
                self.logger.debug(f"Unresolved configuration variable: {key}")
                return match.group(0)
            return item.value

        return self._variable_pattern.sub(substitute, value)

    def get_resolved_value(self, item: ConfigurationItem) -> str:
        """Get an item's value with its placeholders resolved."""
        return self.resolve_variables(item.value, item.profile)

    def reset(self) -> None:
        """Forget everything read so far."""
        self._packages.clear()
        self._items.clear()
        self.state = ReadingState.NOT_STARTED
        self.failure = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'state': self.state.value,
            'failure': self.failure_reason,
            'packages': self.packages,
            'items': [item.to_dict() for item in self._items],
        }

    def __str__(self) -> str:
        parts = [f"State: {self.state.value}"]
        parts.append(f"Packages: {len(self._packages)}")
        parts.append(f"Items: {len(self._items)}")
        if self.failure is not None:
            parts.append(f"Failure: {self.failure}")
        return " | ".join(parts)


def load_configuration(source: Union[ConfigurationSource, str],
                       path: str,
                       settings: Optional[ReaderSettings] = None) -> ServiceConfiguration:
    """
    Convenience function to read a configuration file.

    Read failures do not raise; check ``state`` and ``failure`` on the result.

    Args:
        source: Where the file lives
        path: Asset path, path below external storage, or a URI
        settings: Reader settings (loaded from the settings file if None)

    Returns:
        ServiceConfiguration holding what was read

    Raises:
        SettingsError: If settings are not given and the settings file is invalid
    """
    if settings is None:
        settings = load_settings().settings

    configuration = ServiceConfiguration()
    reader = XmlConfigurationFileReader(configuration, settings=settings)
    reader.read_configuration_file(source, path)
    return configuration
