"""NuGetPulse: dependency graph and version-conflict analysis for NuGet projects."""

__version__ = "0.1.0"
