"""Custom exceptions for NuGetPulse."""


class NuGetPulseError(Exception):
    """Base exception for all NuGetPulse errors."""


class ManifestParseError(NuGetPulseError):
    """Raised when a manifest file cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to parse {path}: {reason}")


class UnsupportedManifestError(NuGetPulseError):
    """Raised when no registered parser handles a given file."""
