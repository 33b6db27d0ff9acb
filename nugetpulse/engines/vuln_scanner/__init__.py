"""Vulnerability scanner engine: OSV lookups for NuGet packages."""

from nugetpulse.engines.vuln_scanner.models import (
    OsvSeverity,
    OsvVulnerability,
    VulnerabilityReport,
)
from nugetpulse.engines.vuln_scanner.osv_client import OsvClient

__all__ = ["OsvClient", "OsvSeverity", "OsvVulnerability", "VulnerabilityReport"]
