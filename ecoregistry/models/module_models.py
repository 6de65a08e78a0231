# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module Registry Data Models

Defines data structures for the module registry: module records, feed
events, version info entries, retraction ranges and update run reports.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from enum import Enum


class ModuleState(str, Enum):
    """Lifecycle state of a module record"""
    INDEX = "index"  # seen in the feed only
    RESOLVED = "resolved"  # version information (or an error) recorded


class ModuleRecord(BaseModel):
    """
    A module known to the registry.

    A record carries either a resolved version (latest_version and info_time
    together) or an error, once the resolve phase has handled it.
    """
    path: str
    state: ModuleState = ModuleState.INDEX
    latest_version: Optional[str] = None
    info_time: Optional[str] = None
    origin: Optional[str] = None
    error: Optional[str] = None

    @property
    def needs_resolution(self) -> bool:
        """Whether the resolve phase should visit this record."""
        return not self.error and (not self.latest_version or not self.info_time)

    def set_resolved(self, version: str, info_time: str, origin: Optional[str]):
        """Record a resolved version; clears any error."""
        self.state = ModuleState.RESOLVED
        self.latest_version = version
        self.info_time = info_time
        self.origin = origin
        self.error = None

    def set_error(self, error: str):
        """Record a soft failure; clears version fields."""
        self.state = ModuleState.RESOLVED
        self.latest_version = None
        self.info_time = None
        self.origin = None
        self.error = error


class FeedEvent(BaseModel):
    """One change observed in the module index feed. Immutable and hashable."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(validation_alias=AliasChoices("Path", "path"))
    version: str = Field(validation_alias=AliasChoices("Version", "version"))
    timestamp: str = Field(validation_alias=AliasChoices("Timestamp", "timestamp"))


class Origin(BaseModel):
    """Provenance of a module version as reported by the proxy"""
    model_config = ConfigDict(populate_by_name=True)

    vcs: Optional[str] = Field(default=None, alias="VCS")
    url: Optional[str] = Field(default=None, alias="URL")
    ref: Optional[str] = Field(default=None, alias="Ref")
    hash: Optional[str] = Field(default=None, alias="Hash")


class InfoEntry(BaseModel):
    """Response of the .info and @latest endpoints"""
    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(alias="Version")
    time: str = Field(default="", alias="Time")
    origin: Origin = Field(default_factory=Origin, alias="Origin")

    def origin_json(self) -> str:
        """Origin serialized the way it is stored on module records."""
        return self.origin.model_dump_json(by_alias=True)


class RetractionRange(BaseModel):
    """Inclusive range of retracted versions declared in a module descriptor"""
    model_config = ConfigDict(frozen=True)

    low: str
    high: str


class UpdateReport(BaseModel):
    """Counts produced by one update run"""
    events_seen: int = 0
    paths_seen: int = 0
    paths_inserted: int = 0
    resolved_with_version: int = 0
    resolved_with_error: int = 0
    watermark: Optional[str] = None
