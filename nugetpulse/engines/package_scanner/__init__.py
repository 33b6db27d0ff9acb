"""Package scanner engine: extract NuGet package references from manifests."""

from nugetpulse.engines.package_scanner.models import (
    CPM_PLACEHOLDER,
    PackageReference,
    PackageSourceType,
    PackageType,
)
from nugetpulse.engines.package_scanner.scanner import scan, scan_file

__all__ = [
    "CPM_PLACEHOLDER",
    "PackageReference",
    "PackageSourceType",
    "PackageType",
    "scan",
    "scan_file",
]
