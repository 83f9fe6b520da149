"""
YAML settings loader for FillTheForm.

Reader settings (asset and external storage roots, request timeout, root tag,
relaxed tokenization) may be kept in a small YAML file. The file is named
explicitly, pointed at by the ``FILLTHEFORM_SETTINGS`` environment variable,
or discovered in the working directory, the home directory and
``~/.config/filltheform``. Without a file the defaults apply.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import yaml
from pydantic import ValidationError

from ..models.settings import ReaderSettings


logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "FILLTHEFORM_SETTINGS"


@dataclass
class SettingsLoadResult:
    """
    Settings together with their origin.

    Attributes:
        settings: Validated reader settings
        settings_path: File the settings came from, None for defaults
        is_default: True when no settings file was used
    """
    settings: ReaderSettings
    settings_path: Optional[Path]
    is_default: bool


class SettingsError(Exception):
    """Raised when a settings file cannot be read or holds invalid values."""
    pass


class SettingsLoader:
    """Finds, reads and validates the reader settings file."""

    SETTINGS_FILE_NAMES = (
        '.filltheform.yaml',
        '.filltheform.yml',
        'filltheform.yaml',
        'filltheform.yml'
    )

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_settings(self, settings_path: Optional[Union[str, Path]] = None) -> SettingsLoadResult:
        """
        Load reader settings.

        Args:
            settings_path: Settings file to use. If None, the environment
                variable and the search locations are tried in turn.

        Returns:
            SettingsLoadResult with the settings and their origin

        Raises:
            SettingsError: If the named file is missing or unreadable, or the
                values fail validation
        """
        if settings_path is None and os.environ.get(SETTINGS_ENV_VAR):
            settings_path = os.environ[SETTINGS_ENV_VAR]

        if settings_path is not None:
            path = Path(settings_path).expanduser()
            if not path.is_file():
                raise SettingsError(f"Settings file not found: {path}")
            data = self._read_mapping(path)
        else:
            path, data = self._discover()

        try:
            settings = ReaderSettings.from_dict(data or {})
        except ValidationError as e:
            raise SettingsError(f"Settings validation failed for {path or 'defaults'}: {e}") from e

        if path is None:
            self.logger.debug("No settings file found, using default reader settings")
        else:
            self.logger.info(f"Reader settings loaded from {path}")

        return SettingsLoadResult(settings=settings, settings_path=path, is_default=path is None)

    def candidate_paths(self) -> Iterator[Path]:
        """Yield the settings files looked for during discovery, in order."""
        home = Path.home()
        for directory in (Path.cwd(), home, home / '.config' / 'filltheform'):
            for file_name in self.SETTINGS_FILE_NAMES:
                yield directory / file_name

    def _discover(self) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """Return the first readable candidate file and its content."""
        for candidate in self.candidate_paths():
            if not candidate.is_file():
                continue
            try:
                return candidate, self._read_mapping(candidate)
            except SettingsError as e:
                self.logger.warning(f"Skipping settings file {candidate}: {e}")
        return None, None

    def _read_mapping(self, path: Path) -> Dict[str, Any]:
        """
        Read a YAML file holding a mapping of settings sections.

        Raises:
            SettingsError: If the file cannot be read, is not YAML, or is not a mapping
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML syntax in {path}: {e}") from e
        except (OSError, IOError) as e:
            raise SettingsError(f"Cannot read settings file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file must contain a YAML object, got {type(data).__name__}")
        return data


def load_settings(settings_path: Optional[Union[str, Path]] = None) -> SettingsLoadResult:
    """
    Convenience function to load reader settings.

    Raises:
        SettingsError: If the settings cannot be loaded
    """
    return SettingsLoader().load_settings(settings_path)
