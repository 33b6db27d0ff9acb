"""Export engine: CSV/JSON output for package references and graphs."""

from nugetpulse.engines.export.exporter import PackageExporter, graph_to_dict
from nugetpulse.engines.export.models import ExportFormat, ExportResult

__all__ = ["ExportFormat", "ExportResult", "PackageExporter", "graph_to_dict"]
