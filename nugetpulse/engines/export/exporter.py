"""CSV / JSON export of scanned package references and dependency graphs."""

from __future__ import annotations

import csv
import io
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import PureWindowsPath
from typing import Any

import structlog
from pydantic import BaseModel

from nugetpulse.engines.dependency_graph.models import DependencyGraph
from nugetpulse.engines.export.models import ExportFormat, ExportResult
from nugetpulse.engines.package_scanner.models import PackageReference

log = structlog.get_logger("nugetpulse.export")

CSV_HEADER = [
    "PackageName",
    "Version",
    "ProjectFile",
    "FullProjectPath",
    "Type",
    "IsCentrallyManaged",
    "SourceType",
    "VersionOverride",
]


class _PackageRecord(BaseModel):
    package_name: str
    version: str
    project_file: str
    full_project_path: str
    type: str
    is_centrally_managed: bool
    version_override: str | None = None
    source_type: str


class _ExportDocument(BaseModel):
    exported_at: datetime
    total_packages: int
    packages: list[_PackageRecord]


def _file_name(path: str) -> str:
    return PureWindowsPath(path).name or path


def _safe_title(title: str | None) -> str:
    if not title or not title.strip():
        return "packages"
    return "".join(c for c in title if c.isalnum() or c in "-_") or "packages"


class PackageExporter:
    """Export package references to CSV (spreadsheet-friendly) or JSON."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def export_csv(
        self,
        packages: Sequence[PackageReference],
        title: str | None = None,
    ) -> ExportResult:
        log.info("export.csv_started", packages=len(packages))

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADER)
        for p in packages:
            writer.writerow(
                [
                    p.package_name,
                    p.version,
                    _file_name(p.project_file),
                    p.project_file,
                    p.type.value,
                    "Yes" if p.is_centrally_managed else "No",
                    p.source_type.value,
                    p.version_override or "",
                ]
            )

        data = buf.getvalue()
        stamp = self._clock().strftime("%Y%m%d%H%M%S")
        result = ExportResult(
            format=ExportFormat.CSV,
            mime_type="text/csv",
            file_name=f"{_safe_title(title)}-{stamp}.csv",
            data=data,
            binary_data=data.encode("utf-8"),
        )
        log.info("export.csv_completed", bytes=result.data_size, packages=len(packages))
        return result

    def export_json(
        self,
        packages: Sequence[PackageReference],
        indented: bool = True,
    ) -> ExportResult:
        log.info("export.json_started", packages=len(packages))

        now = self._clock()
        doc = _ExportDocument(
            exported_at=now,
            total_packages=len(packages),
            packages=[
                _PackageRecord(
                    package_name=p.package_name,
                    version=p.version,
                    project_file=_file_name(p.project_file),
                    full_project_path=p.project_file,
                    type=p.type.value,
                    is_centrally_managed=p.is_centrally_managed,
                    version_override=p.version_override,
                    source_type=p.source_type.value,
                )
                for p in packages
            ],
        )
        data = doc.model_dump_json(indent=2 if indented else None, exclude_none=True)
        result = ExportResult(
            format=ExportFormat.JSON,
            mime_type="application/json",
            file_name=f"packages-{now.strftime('%Y%m%d%H%M%S')}.json",
            data=data,
            binary_data=data.encode("utf-8"),
        )
        log.info("export.json_completed", bytes=result.data_size)
        return result


def graph_to_dict(graph: DependencyGraph) -> dict[str, Any]:
    """Project a graph into plain dicts for visualisers and JSON output."""
    return {
        "nodes": [
            {
                "id": n.id,
                "package_id": n.package_id,
                "version": n.version,
                "label": n.label,
                "node_type": n.node_type.value,
                "declaring_file": n.declaring_file,
                "has_conflict": n.has_conflict,
                "conflict_severity": n.conflict_severity,
            }
            for n in graph.nodes
        ],
        "edges": [
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "edge_type": e.edge_type.value,
                "is_conflict": e.is_conflict,
            }
            for e in graph.edges
        ],
        "conflicts": {
            name: {
                "package_id": c.package_id,
                "versions": list(c.versions),
                "node_ids": list(c.node_ids),
                "severity": c.severity,
                "severity_label": c.severity_label,
                "suggested_version": c.suggested_version,
            }
            for name, c in graph.conflicts.items()
        },
        "summary": {
            "node_count": graph.node_count,
            "edge_count": graph.edge_count,
            "conflict_count": graph.conflict_count,
            "root_package_count": graph.root_package_count,
        },
    }
