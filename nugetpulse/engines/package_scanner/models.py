"""Data models for the package scanner engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Version recorded for a <PackageReference> without a version of its own;
# the real version lives in Directory.Packages.props.
CPM_PLACEHOLDER = "CPM"


class PackageType(str, Enum):
    PACKAGE_REFERENCE = "package_reference"
    PACKAGES_CONFIG = "packages_config"
    PROJECT_REFERENCE = "project_reference"


class PackageSourceType(str, Enum):
    PROJECT_FILE = "project_file"
    PACKAGES_CONFIG = "packages_config"
    DIRECTORY_PACKAGES_PROPS = "directory_packages_props"
    DIRECTORY_BUILD_PROPS = "directory_build_props"
    DIRECTORY_BUILD_TARGETS = "directory_build_targets"


@dataclass(frozen=True)
class PackageReference:
    """A single NuGet package reference found in a manifest file."""

    package_name: str
    version: str
    project_file: str
    type: PackageType = PackageType.PACKAGE_REFERENCE
    is_centrally_managed: bool = False
    version_override: str | None = None
    source_file: str | None = None
    source_type: PackageSourceType = PackageSourceType.PROJECT_FILE
