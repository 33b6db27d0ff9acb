"""Parser for SDK-style and legacy .csproj / .fsproj project files."""

from __future__ import annotations

from pathlib import Path

import structlog

from nugetpulse.engines.package_scanner.models import (
    CPM_PLACEHOLDER,
    PackageReference,
    PackageSourceType,
    PackageType,
)
from nugetpulse.engines.package_scanner.parsers._msbuild import (
    attr,
    child_text,
    iter_local,
    parse_xml,
)
from nugetpulse.engines.package_scanner.registry import register_parser

log = structlog.get_logger("nugetpulse.scanner")


class ProjectFileParser:
    source_type = PackageSourceType.PROJECT_FILE
    file_patterns = ["**/*.csproj", "**/*.fsproj"]

    def parse(self, file_path: Path, content: str) -> list[PackageReference]:
        root = parse_xml(file_path, content)
        deps: list[PackageReference] = []

        for el in iter_local(root, "PackageReference"):
            # Update= modifies an item brought in elsewhere (e.g. Directory.Build.props)
            name = attr(el, "Include") or attr(el, "Update")
            if not name:
                continue

            override = attr(el, "VersionOverride")
            version = (
                override
                or attr(el, "Version")
                or child_text(el, "Version")
                or CPM_PLACEHOLDER
            )

            deps.append(
                PackageReference(
                    package_name=name,
                    version=version,
                    project_file=str(file_path),
                    type=PackageType.PACKAGE_REFERENCE,
                    version_override=override,
                    source_file=str(file_path),
                    source_type=self.source_type,
                )
            )

        log.debug("scanner.parsed", file=str(file_path), packages=len(deps))
        return deps


register_parser(ProjectFileParser())
