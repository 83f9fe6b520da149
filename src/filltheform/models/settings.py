"""
Reader settings models for FillTheForm.

This module defines the settings that control where configuration files are
looked up and how the XML reader tokenizes them.
"""

import os
from typing import Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator


DEFAULT_ROOT_TAG = "filltheformconfig"


def _default_external_storage_root() -> str:
    return os.getenv("EXTERNAL_STORAGE") or str(Path.home())


class SourceSettings(BaseModel):
    """
    Settings for resolving configuration sources.

    Attributes:
        assets_root: Directory holding bundled, read-only configuration assets
        external_storage_root: Root directory for external storage paths
        request_timeout: Timeout in seconds for remote URIs
    """

    assets_root: str = Field("assets", description="Directory of bundled configuration assets")
    external_storage_root: str = Field(
        default_factory=_default_external_storage_root,
        description="Root directory for external storage paths"
    )
    request_timeout: float = Field(10.0, gt=0, description="Timeout in seconds for remote URIs")

    @field_validator('assets_root', 'external_storage_root')
    @classmethod
    def validate_root(cls, v: str) -> str:
        """Expand user path but keep relative paths relative."""
        if not v or not v.strip():
            raise ValueError("Root directory cannot be empty")
        if v.startswith('~'):
            return str(Path(v).expanduser())
        return str(Path(v))

    def get_assets_path(self) -> Path:
        return Path(self.assets_root)

    def get_external_storage_path(self) -> Path:
        return Path(self.external_storage_root)


class ParserSettings(BaseModel):
    """
    Settings for the XML reader.

    Attributes:
        root_tag: Name of the document's top-level wrapper element
        relaxed_entities: Keep undeclared ``&name;`` references as literal text
    """

    root_tag: str = Field(DEFAULT_ROOT_TAG, description="Top-level wrapper element name")
    relaxed_entities: bool = Field(True, description="Keep undeclared entity references as text")

    @field_validator('root_tag')
    @classmethod
    def validate_root_tag(cls, v: str) -> str:
        """Normalize the root tag for case-insensitive matching."""
        if not v or not v.strip():
            raise ValueError("Root tag cannot be empty")
        return v.strip().lower()


class ReaderSettings(BaseModel):
    """
    Complete settings for reading configuration files.

    Attributes:
        sources: Source resolution settings
        parser: XML reader settings
    """

    sources: SourceSettings = Field(default_factory=SourceSettings, description="Source resolution settings")
    parser: ParserSettings = Field(default_factory=ParserSettings, description="XML reader settings")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReaderSettings':
        """Create a ReaderSettings instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        return (
            f"ReaderSettings(assets={self.sources.assets_root}, "
            f"external_storage={self.sources.external_storage_root}, "
            f"root_tag={self.parser.root_tag})"
        )
