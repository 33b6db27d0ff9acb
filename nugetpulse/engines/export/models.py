"""Data models for the export engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


@dataclass(frozen=True)
class ExportResult:
    format: ExportFormat
    mime_type: str
    file_name: str
    data: str
    binary_data: bytes

    @property
    def data_size(self) -> int:
        return len(self.binary_data)
