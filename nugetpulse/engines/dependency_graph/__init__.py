"""Dependency graph engine: project/package graph with version-conflict detection."""

from nugetpulse.engines.dependency_graph.builder import DependencyGraphBuilder
from nugetpulse.engines.dependency_graph.models import (
    ConflictInfo,
    DependencyEdge,
    DependencyGraph,
    DependencyGraphOptions,
    DependencyNode,
    EdgeType,
    NodeType,
    PackageFact,
)

__all__ = [
    "ConflictInfo",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "DependencyGraphOptions",
    "DependencyNode",
    "EdgeType",
    "NodeType",
    "PackageFact",
]
