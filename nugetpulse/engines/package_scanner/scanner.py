"""Package scanner: collect NuGet package references from a source tree."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import structlog

# Ensure parsers are registered before any scan runs.
import nugetpulse.engines.package_scanner.parsers  # noqa: F401
from nugetpulse.engines.package_scanner.models import (
    CPM_PLACEHOLDER,
    PackageReference,
    PackageSourceType,
)
from nugetpulse.engines.package_scanner.registry import discover_manifests, parser_for
from nugetpulse.exceptions import ManifestParseError, UnsupportedManifestError

log = structlog.get_logger("nugetpulse.scanner")


def scan_file(file_path: Path) -> list[PackageReference]:
    """Parse a single manifest file.

    Raises ``FileNotFoundError`` if the file is missing,
    :class:`UnsupportedManifestError` if no parser handles it, and
    :class:`ManifestParseError` if it is not well-formed XML.
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"file not found: {file_path}")
    parser = parser_for(file_path)
    if parser is None:
        raise UnsupportedManifestError(f"unsupported manifest: {file_path.name}")
    return parser.parse(file_path, _read(file_path))


def scan(root: Path, *, resolve_central_versions: bool = True) -> list[PackageReference]:
    """Scan *root* recursively for package references.

    Files that fail to parse are logged and skipped. Paths in the result are
    POSIX paths relative to *root*. Duplicate ``(name, version, file)``
    references are dropped, keeping the first.
    """
    if not root.is_dir():
        raise NotADirectoryError(f"directory not found: {root}")

    results: list[PackageReference] = []
    for parser, file_path in discover_manifests(root):
        try:
            parsed = parser.parse(file_path, _read(file_path))
        except (ManifestParseError, OSError) as exc:
            log.warning("scanner.parse_failed", file=str(file_path), error=str(exc))
            continue

        rel = file_path.relative_to(root).as_posix()
        results.extend(replace(ref, project_file=rel, source_file=rel) for ref in parsed)

    if resolve_central_versions:
        results = _resolve_central_versions(results)

    deduped = _dedupe(results)
    log.info("scanner.completed", root=str(root), packages=len(deduped))
    return deduped


def _read(file_path: Path) -> str:
    return file_path.read_text(encoding="utf-8-sig", errors="replace")


def _resolve_central_versions(refs: list[PackageReference]) -> list[PackageReference]:
    """Replace ``CPM`` placeholders with versions from Directory.Packages.props."""
    central: dict[str, str] = {}
    for ref in refs:
        if ref.source_type is PackageSourceType.DIRECTORY_PACKAGES_PROPS:
            central.setdefault(ref.package_name.lower(), ref.version)
    if not central:
        return refs

    resolved: list[PackageReference] = []
    for ref in refs:
        version = central.get(ref.package_name.lower())
        if ref.version == CPM_PLACEHOLDER and version is not None:
            ref = replace(ref, version=version, is_centrally_managed=True)
        elif ref.version == CPM_PLACEHOLDER:
            log.debug("scanner.cpm_unresolved", package=ref.package_name, file=ref.project_file)
        resolved.append(ref)
    return resolved


def _dedupe(refs: list[PackageReference]) -> list[PackageReference]:
    seen: set[tuple[str, str, str | None]] = set()
    unique: list[PackageReference] = []
    for ref in refs:
        key = (ref.package_name, ref.version, ref.source_file)
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique
