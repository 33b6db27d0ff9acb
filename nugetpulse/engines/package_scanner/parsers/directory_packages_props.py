"""Parser for Directory.Packages.props (central package management)."""

from __future__ import annotations

from pathlib import Path

from nugetpulse.engines.package_scanner.models import (
    PackageReference,
    PackageSourceType,
    PackageType,
)
from nugetpulse.engines.package_scanner.parsers._msbuild import attr, iter_local, parse_xml
from nugetpulse.engines.package_scanner.registry import register_parser


class DirectoryPackagesPropsParser:
    source_type = PackageSourceType.DIRECTORY_PACKAGES_PROPS
    # Only the repo-root file is read; nested ones are not merged.
    file_patterns = ["Directory.Packages.props"]

    def parse(self, file_path: Path, content: str) -> list[PackageReference]:
        root = parse_xml(file_path, content)
        deps: list[PackageReference] = []

        for el in iter_local(root, "PackageVersion"):
            name = attr(el, "Include")
            version = attr(el, "Version")
            if not name or not version:
                continue

            deps.append(
                PackageReference(
                    package_name=name,
                    version=version,
                    project_file=str(file_path),
                    type=PackageType.PACKAGE_REFERENCE,
                    is_centrally_managed=True,
                    source_file=str(file_path),
                    source_type=self.source_type,
                )
            )

        return deps


register_parser(DirectoryPackagesPropsParser())
