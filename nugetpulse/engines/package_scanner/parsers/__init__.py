"""Manifest parsers: auto-registered on import."""

from nugetpulse.engines.package_scanner.parsers import (
    directory_packages_props,  # noqa: F401
    packages_config,  # noqa: F401
    project_file,  # noqa: F401
)
