"""Data models for the NuGet registry client.

The ``_NuGet*`` / ``_Registration*`` pydantic models mirror the parts of the
search and registration responses we read. :class:`PackageStats` is what
callers see.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from nugetpulse.engines.health.score import HealthScore


@dataclass(frozen=True)
class VersionDownload:
    version: str
    downloads: int


@dataclass(frozen=True)
class PackageSearchResult:
    id: str
    version: str
    total_downloads: int
    description: str | None = None
    icon_url: str | None = None


@dataclass(frozen=True)
class PackageStats:
    """Download and publishing metadata for one package on the feed."""

    id: str
    version: str
    total_downloads: int = 0
    description: str | None = None
    authors: str | None = None
    project_url: str | None = None
    license_expression: str | None = None
    published: datetime | None = None
    is_verified: bool = False
    is_deprecated: bool = False
    deprecation_reasons: list[str] = field(default_factory=list)
    versions: list[VersionDownload] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    target_frameworks: list[str] = field(default_factory=list)

    def health(self, vulnerability_count: int = 0, *, now: datetime | None = None) -> HealthScore:
        """Score this package; *vulnerability_count* comes from an OSV lookup."""
        return HealthScore.compute(
            self.total_downloads,
            self.published,
            vulnerability_count,
            self.is_deprecated,
            now=now,
        )


# ── wire DTOs ────────────────────────────────────────────────────────────


class _NuGetModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _VersionSummary(_NuGetModel):
    version: str = ""
    downloads: int = 0


class _NuGetSearchData(_NuGetModel):
    id: str = ""
    version: str = ""
    description: str | None = None
    total_downloads: int = Field(0, alias="totalDownloads")
    verified: bool = False
    authors: list[str] | str | None = None
    icon_url: str | None = Field(None, alias="iconUrl")
    project_url: str | None = Field(None, alias="projectUrl")
    tags: list[str] | None = None
    versions: list[_VersionSummary] | None = None


class NuGetSearchResponse(_NuGetModel):
    total_hits: int = Field(0, alias="totalHits")
    data: list[_NuGetSearchData] | None = None


class _Deprecation(_NuGetModel):
    reasons: list[str] | None = None
    message: str | None = None


class _DependencyGroup(_NuGetModel):
    target_framework: str | None = Field(None, alias="targetFramework")


class RegistrationCatalogEntry(_NuGetModel):
    version: str | None = None
    license_expression: str | None = Field(None, alias="licenseExpression")
    project_url: str | None = Field(None, alias="projectUrl")
    published: datetime | None = None
    deprecation: _Deprecation | None = None
    dependency_groups: list[_DependencyGroup] | None = Field(None, alias="dependencyGroups")


class _RegistrationLeaf(_NuGetModel):
    catalog_entry: RegistrationCatalogEntry | None = Field(None, alias="catalogEntry")


class RegistrationPage(_NuGetModel):
    url: str | None = Field(None, alias="@id")
    items: list[_RegistrationLeaf] | None = None


class RegistrationIndex(_NuGetModel):
    items: list[RegistrationPage] | None = None
