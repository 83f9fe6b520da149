"""
Settings management package for FillTheForm.

Finds and loads the YAML file holding the reader settings.
"""

from .loader import (
    SETTINGS_ENV_VAR,
    SettingsLoader,
    SettingsLoadResult,
    SettingsError,
    load_settings
)

__all__ = [
    'SETTINGS_ENV_VAR',
    'SettingsLoader',
    'SettingsLoadResult',
    'SettingsError',
    'load_settings'
]
