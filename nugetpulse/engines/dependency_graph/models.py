"""Data models for the dependency graph engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class PackageFact(Protocol):
    """A single observed package reference, as produced by a scanner."""

    package_name: str
    version: str
    project_file: str
    is_centrally_managed: bool


class NodeType(str, Enum):
    ROOT_PACKAGE = "root_package"
    PROJECT = "project"


class EdgeType(str, Enum):
    DIRECT = "direct"
    TRANSITIVE = "transitive"
    CONFLICT = "conflict"


@dataclass
class DependencyNode:
    """A package version or a project file in the graph.

    ``has_conflict`` and ``conflict_severity`` are filled in by the builder's
    conflict pass; everything else is fixed at creation.
    """

    id: str
    package_id: str
    version: str
    label: str
    node_type: NodeType
    declaring_file: str | None = None
    has_conflict: bool = False
    conflict_severity: int = 0


@dataclass(frozen=True)
class DependencyEdge:
    id: str
    source: str
    target: str
    edge_type: EdgeType
    is_conflict: bool = False


_SEVERITY_LABELS = {3: "High", 2: "Medium", 1: "Low"}


@dataclass(frozen=True)
class ConflictInfo:
    """A package referenced at more than one version.

    *severity* is 1 (patch), 2 (minor) or 3 (major). *suggested_version* is
    the ordinal string maximum of *versions*, not a semver maximum.
    """

    package_id: str
    versions: list[str]
    node_ids: list[str]
    severity: int
    suggested_version: str | None = None

    @property
    def severity_label(self) -> str:
        return _SEVERITY_LABELS.get(self.severity, "Unknown")


@dataclass
class DependencyGraph:
    """Nodes, edges and the conflict index produced by one build."""

    nodes: list[DependencyNode] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)
    conflicts: dict[str, ConflictInfo] = field(default_factory=dict)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    @property
    def root_package_count(self) -> int:
        return sum(1 for n in self.nodes if n.node_type is NodeType.ROOT_PACKAGE)

    def get_conflict(self, package_id: str) -> ConflictInfo | None:
        """Case-insensitive lookup into :attr:`conflicts`."""
        key = package_id.lower()
        for name, info in self.conflicts.items():
            if name.lower() == key:
                return info
        return None


@dataclass(frozen=True)
class DependencyGraphOptions:
    highlight_conflicts: bool = True
