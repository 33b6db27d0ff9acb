"""Tests for the export engine."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone

import pytest

from nugetpulse.engines.dependency_graph import DependencyGraphBuilder, DependencyGraphOptions
from nugetpulse.engines.export import ExportFormat, PackageExporter, graph_to_dict
from nugetpulse.engines.package_scanner import PackageSourceType, PackageType

FIXED = datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


@pytest.fixture
def exporter():
    return PackageExporter(clock=lambda: FIXED)


@pytest.fixture
def refs(make_ref):
    return [
        make_ref("Newtonsoft.Json", "13.0.3", "src/App/App.csproj"),
        make_ref(
            "Serilog",
            "3.1.1",
            "src/App/App.csproj",
            is_centrally_managed=True,
        ),
        make_ref(
            "EntityFramework",
            "6.4.4",
            "legacy/packages.config",
            type=PackageType.PACKAGES_CONFIG,
            source_type=PackageSourceType.PACKAGES_CONFIG,
        ),
        make_ref("Serilog", "4.0.0", "src/Api/Api.csproj", version_override="4.0.0"),
    ]


class TestCsvExport:
    def test_rows(self, exporter, refs):
        result = exporter.export_csv(refs)
        rows = list(csv.reader(io.StringIO(result.data)))

        assert rows[0] == [
            "PackageName",
            "Version",
            "ProjectFile",
            "FullProjectPath",
            "Type",
            "IsCentrallyManaged",
            "SourceType",
            "VersionOverride",
        ]
        assert len(rows) == 5
        assert rows[1] == [
            "Newtonsoft.Json",
            "13.0.3",
            "App.csproj",
            "src/App/App.csproj",
            "package_reference",
            "No",
            "project_file",
            "",
        ]
        assert rows[2][5] == "Yes"
        assert rows[3][4] == "packages_config"
        assert rows[4][7] == "4.0.0"

    def test_metadata(self, exporter, refs):
        result = exporter.export_csv(refs)
        assert result.format is ExportFormat.CSV
        assert result.mime_type == "text/csv"
        assert result.file_name == "packages-20260304050607.csv"
        assert result.binary_data == result.data.encode("utf-8")
        assert result.data_size == len(result.binary_data)

    def test_title_is_sanitised(self, exporter, refs):
        result = exporter.export_csv(refs, title="My Solution (v2)/prod_1")
        assert result.file_name == "MySolutionv2prod_1-20260304050607.csv"

    def test_blank_title(self, exporter, refs):
        assert exporter.export_csv(refs, title="   ").file_name.startswith("packages-")

    def test_empty(self, exporter):
        result = exporter.export_csv([])
        assert list(csv.reader(io.StringIO(result.data)))[1:] == []


class TestJsonExport:
    def test_document(self, exporter, refs):
        result = exporter.export_json(refs)
        doc = json.loads(result.data)

        assert result.format is ExportFormat.JSON
        assert result.mime_type == "application/json"
        assert result.file_name == "packages-20260304050607.json"
        assert doc["total_packages"] == 4
        assert doc["exported_at"].startswith("2026-03-04T05:06:07")
        first = doc["packages"][0]
        assert first == {
            "package_name": "Newtonsoft.Json",
            "version": "13.0.3",
            "project_file": "App.csproj",
            "full_project_path": "src/App/App.csproj",
            "type": "package_reference",
            "is_centrally_managed": False,
            "source_type": "project_file",
        }
        assert doc["packages"][3]["version_override"] == "4.0.0"

    def test_indentation(self, exporter, refs):
        assert "\n" in exporter.export_json(refs).data
        assert "\n" not in exporter.export_json(refs, indented=False).data


class TestGraphToDict:
    def test_projection(self, refs):
        graph = DependencyGraphBuilder().build(refs)
        data = graph_to_dict(graph)

        assert data["summary"] == {
            "node_count": graph.node_count,
            "edge_count": graph.edge_count,
            "conflict_count": 1,
            "root_package_count": 4,
        }
        assert [n["id"] for n in data["nodes"]] == [n.id for n in graph.nodes]
        assert [e["id"] for e in data["edges"]] == [e.id for e in graph.edges]

        serilog = data["conflicts"]["Serilog"]
        assert serilog["versions"] == ["3.1.1", "4.0.0"]
        assert serilog["severity"] == 3
        assert serilog["severity_label"] == "High"
        assert serilog["suggested_version"] == "4.0.0"

        conflict_edges = [e for e in data["edges"] if e["edge_type"] == "conflict"]
        assert len(conflict_edges) == 1
        assert conflict_edges[0]["is_conflict"] is True

    def test_json_serialisable(self, refs):
        graph = DependencyGraphBuilder().build(refs, DependencyGraphOptions(highlight_conflicts=False))
        data = json.loads(json.dumps(graph_to_dict(graph)))
        assert data["conflicts"] == {}
        assert {n["node_type"] for n in data["nodes"]} == {"root_package", "project"}
