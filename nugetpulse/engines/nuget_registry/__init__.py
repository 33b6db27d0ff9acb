"""NuGet registry engine: download stats and release metadata from nuget.org."""

from nugetpulse.engines.nuget_registry.client import NuGetClient
from nugetpulse.engines.nuget_registry.models import (
    PackageSearchResult,
    PackageStats,
    VersionDownload,
)

__all__ = ["NuGetClient", "PackageSearchResult", "PackageStats", "VersionDownload"]
