"""Parser for legacy packages.config files."""

from __future__ import annotations

from pathlib import Path

from nugetpulse.engines.package_scanner.models import (
    PackageReference,
    PackageSourceType,
    PackageType,
)
from nugetpulse.engines.package_scanner.parsers._msbuild import attr, iter_local, parse_xml
from nugetpulse.engines.package_scanner.registry import register_parser


class PackagesConfigParser:
    source_type = PackageSourceType.PACKAGES_CONFIG
    file_patterns = ["**/packages.config"]

    def parse(self, file_path: Path, content: str) -> list[PackageReference]:
        root = parse_xml(file_path, content)
        deps: list[PackageReference] = []

        for el in iter_local(root, "package"):
            name = attr(el, "id")
            version = attr(el, "version")
            if not name or not version:
                continue

            deps.append(
                PackageReference(
                    package_name=name,
                    version=version,
                    project_file=str(file_path),
                    type=PackageType.PACKAGES_CONFIG,
                    source_file=str(file_path),
                    source_type=self.source_type,
                )
            )

        return deps


register_parser(PackagesConfigParser())
