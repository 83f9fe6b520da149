"""
Configuration data models for FillTheForm.

This module defines the structures produced while reading a configuration
document: single configuration items, the supported source kinds and the
descriptor used to locate a configuration file.
"""

from typing import Dict, Any, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConfigurationSource(Enum):
    """Supported locations a configuration file can be read from."""
    ASSETS = "assets"
    EXTERNAL_STORAGE = "external_storage"
    URI = "uri"


class ConfigurationItem(BaseModel):
    """
    One leaf setting read from the configuration document.

    Attributes:
        key: Tag name of the element, case preserved as encountered
        profile: Name of the enclosing profile, None outside of a profile
        value: Text content of the element
        label: Optional human-readable annotation
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Tag name of the configuration item")
    profile: Optional[str] = Field(None, description="Enclosing profile name")
    value: str = Field("", description="Text content of the element")
    label: Optional[str] = Field(None, description="Human-readable annotation")

    def matches_key(self, key: str) -> bool:
        """Check if this item is stored under the given key (case-insensitive)."""
        return self.key.lower() == key.lower()

    def get_display_name(self) -> str:
        """Get the label if present, otherwise the key."""
        return self.label or self.key

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()

    def __str__(self) -> str:
        """String representation of the configuration item."""
        scope = f"[{self.profile}] " if self.profile is not None else ""
        return f"{scope}{self.key}={self.value!r}"


class SourceDescriptor(BaseModel):
    """
    Location of a configuration file.

    Attributes:
        source: Which resolution strategy to use
        path: Asset path, path below external storage, or a URI
    """

    source: ConfigurationSource = Field(..., description="Configuration source kind")
    path: str = Field(..., description="Path or URI of the configuration file")

    @field_validator('source', mode='before')
    @classmethod
    def validate_source(cls, v) -> ConfigurationSource:
        """Validate and convert source to enum."""
        if isinstance(v, str):
            try:
                return ConfigurationSource(v.lower())
            except ValueError:
                raise ValueError(f"Invalid configuration source: {v}")
        return v

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject empty paths."""
        if not v:
            raise ValueError("Configuration file path is empty")
        return v

    def __str__(self) -> str:
        return f"{self.source.value}:{self.path}"
