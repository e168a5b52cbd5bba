"""Pydantic models describing the TOML extension file format."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invext.domain.model import SemVer


class ExtensionFileModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class ManufacturerEntry(ExtensionFileModel):
    id: str = Field(min_length=1)
    display_name: str


class CategoryEntry(ExtensionFileModel):
    id: str = Field(min_length=1)
    display_name: str


class DeviceEntry(ExtensionFileModel):
    id: str = Field(min_length=1)
    display_name: str
    manufacturer: str = Field(min_length=1)
    category: str = Field(min_length=1)
    primary_model_identifiers: list[str]
    extended_model_identifiers: list[str]


class ExtensionDocument(ExtensionFileModel):
    """Top level of one extension file."""

    extension_id: str = Field(min_length=1)
    extension_display_name: str
    extension_version: str
    device_manufacturers: list[ManufacturerEntry] = Field(default_factory=list[ManufacturerEntry])
    device_categories: list[CategoryEntry] = Field(default_factory=list[CategoryEntry])
    devices: list[DeviceEntry]

    @field_validator("extension_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        SemVer.parse(value)
        return value
