"""DependencyGraphBuilder: project/package graph with version-conflict detection.

Each distinct ``(package, version)`` pair becomes a package node and each
declaring file becomes a project node, with a ``direct`` edge for every
package a file references. Packages seen at more than one version are
recorded as conflicts, their nodes flagged, and linked pairwise by
``conflict`` edges.

Severity and the suggested version are heuristics: severity compares at most
the first three numeric components of each version (pre-release suffixes are
dropped), and the suggested version is the ordinal string maximum, so
``"1.2.0"`` beats ``"1.10.0"``. Callers that need semver ordering must
post-process.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from itertools import combinations
from pathlib import PureWindowsPath

import structlog

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

log = structlog.get_logger("nugetpulse.graph")

SEVERITY_NONE = 0
SEVERITY_PATCH = 1
SEVERITY_MINOR = 2
SEVERITY_MAJOR = 3


def parse_version_prefix(version: str) -> list[int]:
    """Return up to three leading numeric components of *version*.

    Anything from the first ``-`` on is ignored; components that are not
    plain ASCII digit runs count as 0. ``"4.20.72-beta.1"`` -> ``[4, 20, 72]``,
    ``"latest"`` -> ``[0]``.
    """
    parts: list[int] = []
    for part in version.split("-", 1)[0].split(".")[:3]:
        parts.append(int(part) if part.isascii() and part.isdigit() else 0)
    return parts


def calculate_severity(versions: Iterable[str]) -> int:
    """Classify a set of versions of one package.

    Returns 0 for fewer than two versions, otherwise 3 if any pair differs in
    the major component, 2 if any pair differs in the minor component, else 1.
    A component is only compared when both versions have it.
    """
    parsed = [parse_version_prefix(v) for v in versions]
    if len(parsed) <= 1:
        return SEVERITY_NONE

    has_minor_diff = False
    for a, b in combinations(parsed, 2):
        if a[0] != b[0]:
            return SEVERITY_MAJOR
        if len(a) > 1 and len(b) > 1 and a[1] != b[1]:
            has_minor_diff = True

    return SEVERITY_MINOR if has_minor_diff else SEVERITY_PATCH


def suggest_version(versions: Iterable[str]) -> str | None:
    """Ordinal string maximum of *versions* (not semver-aware)."""
    return max(versions, default=None)


def package_node_id(name: str, version: str) -> str:
    return f"{name}_{version}"


def project_node_id(project_file: str) -> str:
    """Stable id for a project file.

    The base name keeps ids readable; the path digest keeps same-named files
    in different directories apart. Paths compare case-insensitively.
    """
    digest = hashlib.sha1(project_file.lower().encode("utf-8")).hexdigest()[:8]
    return f"project_{_base_name(project_file)}_{digest.upper()}"


def _base_name(path: str) -> str:
    # PureWindowsPath splits on both "/" and "\\".
    return PureWindowsPath(path).name or path


class DependencyGraphBuilder:
    """Build a :class:`DependencyGraph` from flat package facts.

    Stateless: every call to :meth:`build` works on fresh local state, so one
    instance can be shared between threads.
    """

    def build(
        self,
        packages: Sequence[PackageFact],
        options: DependencyGraphOptions | None = None,
    ) -> DependencyGraph:
        options = options or DependencyGraphOptions()
        graph = DependencyGraph()

        # lower-cased name -> {lower-cased version: version as first seen}
        package_versions: dict[str, dict[str, str]] = {}
        # (lower-cased name, lower-cased version) -> node
        package_nodes: dict[tuple[str, str], DependencyNode] = {}

        # ── package nodes ────────────────────────────────────────────────
        for pkg in packages:
            key = (pkg.package_name.lower(), pkg.version.lower())
            if key in package_nodes:
                continue

            node = DependencyNode(
                id=package_node_id(pkg.package_name, pkg.version),
                package_id=pkg.package_name,
                version=pkg.version,
                label=f"{pkg.package_name} {pkg.version}",
                node_type=NodeType.ROOT_PACKAGE,
                declaring_file=pkg.project_file,
            )
            package_nodes[key] = node
            graph.nodes.append(node)
            package_versions.setdefault(key[0], {})[key[1]] = pkg.version

        # ── project nodes + direct edges ─────────────────────────────────
        by_project: dict[str, list[PackageFact]] = {}
        project_paths: dict[str, str] = {}
        for pkg in packages:
            file_key = pkg.project_file.lower()
            project_paths.setdefault(file_key, pkg.project_file)
            by_project.setdefault(file_key, []).append(pkg)

        for file_key, project_file in project_paths.items():
            project_id = project_node_id(project_file)
            name = _base_name(project_file)
            graph.nodes.append(
                DependencyNode(
                    id=project_id,
                    package_id=name,
                    version="",
                    label=name,
                    node_type=NodeType.PROJECT,
                    declaring_file=project_file,
                )
            )

            seen_keys: set[tuple[str, str]] = set()
            for pkg in by_project[file_key]:
                key = (pkg.package_name.lower(), pkg.version.lower())
                if key in seen_keys:
                    continue
                seen_keys.add(key)
                target = package_nodes[key]
                graph.edges.append(
                    DependencyEdge(
                        id=f"{project_id}_to_{target.id}",
                        source=project_id,
                        target=target.id,
                        edge_type=EdgeType.DIRECT,
                    )
                )

        if options.highlight_conflicts:
            self._detect_conflicts(graph, package_versions)

        log.debug(
            "graph.built",
            nodes=graph.node_count,
            edges=graph.edge_count,
            conflicts=graph.conflict_count,
        )
        return graph

    # ── helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _detect_conflicts(
        graph: DependencyGraph,
        package_versions: dict[str, dict[str, str]],
    ) -> None:
        for name_key, versions_by_key in package_versions.items():
            if len(versions_by_key) <= 1:
                continue

            conflict_nodes = [
                n
                for n in graph.nodes
                if n.node_type is NodeType.ROOT_PACKAGE and n.package_id.lower() == name_key
            ]
            if len(conflict_nodes) <= 1:
                continue

            versions = sorted(versions_by_key.values())
            severity = calculate_severity(versions)
            package_id = conflict_nodes[0].package_id

            graph.conflicts[package_id] = ConflictInfo(
                package_id=package_id,
                versions=versions,
                node_ids=[n.id for n in conflict_nodes],
                severity=severity,
                suggested_version=suggest_version(versions),
            )

            for node in conflict_nodes:
                node.has_conflict = True
                node.conflict_severity = severity

            for a, b in combinations(conflict_nodes, 2):
                graph.edges.append(
                    DependencyEdge(
                        id=f"conflict_{a.id}_to_{b.id}",
                        source=a.id,
                        target=b.id,
                        edge_type=EdgeType.CONFLICT,
                        is_conflict=True,
                    )
                )
