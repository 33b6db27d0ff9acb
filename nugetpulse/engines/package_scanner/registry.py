"""Parser registry: discover manifest files and match them to parsers."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Protocol, runtime_checkable

from nugetpulse.engines.package_scanner.models import PackageReference, PackageSourceType


@runtime_checkable
class ManifestParser(Protocol):
    """Interface that every manifest parser must satisfy."""

    source_type: PackageSourceType
    file_patterns: list[str]

    def parse(self, file_path: Path, content: str) -> list[PackageReference]: ...


PARSER_REGISTRY: dict[PackageSourceType, ManifestParser] = {}


def register_parser(parser: ManifestParser) -> None:
    """Register a parser instance by its source_type."""
    PARSER_REGISTRY[parser.source_type] = parser


def discover_manifests(root: Path) -> list[tuple[ManifestParser, Path]]:
    """Walk *root* and match manifest files to registered parsers.

    Returns a list of (parser, matched_file) pairs in registration order.
    """
    matches: list[tuple[ManifestParser, Path]] = []
    for parser in PARSER_REGISTRY.values():
        for pattern in parser.file_patterns:
            for hit in sorted(root.glob(pattern)):
                if hit.is_file():
                    matches.append((parser, hit))
    return matches


def parser_for(file_path: Path) -> ManifestParser | None:
    """Return the parser whose file pattern matches *file_path*'s name."""
    name = file_path.name.lower()
    for parser in PARSER_REGISTRY.values():
        for pattern in parser.file_patterns:
            if fnmatch(name, pattern.rsplit("/", 1)[-1].lower()):
                return parser
    return None
