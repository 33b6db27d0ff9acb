"""CLI entry point: nugetpulse.

Subcommands:
    nugetpulse scan /path/to/solution             # list package references
    nugetpulse graph /path/to/solution            # dependency graph + version conflicts
    nugetpulse export /path/to/solution -f csv    # CSV / JSON export
    nugetpulse audit /path/to/solution            # OSV vulnerability lookup
    nugetpulse health /path/to/solution           # nuget.org stats + health score
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from nugetpulse.core.logging import setup_logging
from nugetpulse.engines.dependency_graph import DependencyGraphBuilder, DependencyGraphOptions
from nugetpulse.engines.export import PackageExporter, graph_to_dict
from nugetpulse.engines.nuget_registry import NuGetClient, PackageStats
from nugetpulse.engines.package_scanner import CPM_PLACEHOLDER, PackageReference, scan
from nugetpulse.engines.vuln_scanner import OsvClient, VulnerabilityReport

_PATH = click.Path(exists=True, file_okay=False, path_type=Path)


def _scan_or_report(path: Path, resolve_cpm: bool = True) -> list[PackageReference]:
    refs = scan(path, resolve_central_versions=resolve_cpm)
    if not refs:
        click.echo("No package references found.")
    return refs


def _distinct_versions(refs: list[PackageReference]) -> list[tuple[str, str]]:
    """Distinct (package, version) pairs, skipping unresolved CPM placeholders."""
    pairs: dict[tuple[str, str], tuple[str, str]] = {}
    for r in refs:
        if r.version == CPM_PLACEHOLDER:
            continue
        pairs.setdefault((r.package_name.lower(), r.version), (r.package_name, r.version))
    return list(pairs.values())


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """NuGetPulse: dependency graph and version-conflict analysis for NuGet projects."""
    setup_logging("DEBUG" if verbose else None)


@main.command("scan")
@click.argument("path", type=_PATH)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--no-resolve-cpm",
    is_flag=True,
    help="Keep 'CPM' placeholders instead of resolving Directory.Packages.props versions",
)
def scan_cmd(path: Path, as_json: bool, no_resolve_cpm: bool) -> None:
    """List package references found under PATH."""
    refs = _scan_or_report(path, resolve_cpm=not no_resolve_cpm)
    if not refs:
        return

    if as_json:
        rows = [
            {
                "package_name": r.package_name,
                "version": r.version,
                "project_file": r.project_file,
                "type": r.type.value,
                "is_centrally_managed": r.is_centrally_managed,
                "version_override": r.version_override,
                "source_type": r.source_type.value,
            }
            for r in refs
        ]
        click.echo(json.dumps(rows, indent=2))
        return

    by_file: dict[str, list[PackageReference]] = {}
    for r in refs:
        by_file.setdefault(r.project_file, []).append(r)

    click.echo(f"Found {len(refs)} package references in {len(by_file)} file(s)\n")
    for project_file, file_refs in sorted(by_file.items()):
        click.echo(f"  {project_file}  ({file_refs[0].source_type.value})")
        for r in file_refs:
            central = "  [central]" if r.is_centrally_managed else ""
            click.echo(f"    {r.package_name:40s} {r.version}{central}")
        click.echo()


@main.command("graph")
@click.argument("path", type=_PATH)
@click.option("--no-conflicts", is_flag=True, help="Skip version-conflict detection")
@click.option("--json", "as_json", is_flag=True, help="Output nodes/edges/conflicts as JSON")
def graph_cmd(path: Path, no_conflicts: bool, as_json: bool) -> None:
    """Build the dependency graph for PATH and report version conflicts."""
    refs = _scan_or_report(path)
    options = DependencyGraphOptions(highlight_conflicts=not no_conflicts)
    graph = DependencyGraphBuilder().build(refs, options)

    if as_json:
        click.echo(json.dumps(graph_to_dict(graph), indent=2))
        return

    click.echo(
        f"Graph: {graph.node_count} nodes, {graph.edge_count} edges, "
        f"{graph.root_package_count} packages, {graph.conflict_count} conflicts"
    )
    if not graph.conflicts:
        return

    click.echo("\nVersion conflicts:")
    for conflict in sorted(graph.conflicts.values(), key=lambda c: (-c.severity, c.package_id)):
        click.echo(
            f"  [{conflict.severity_label:6s}] {conflict.package_id}: "
            f"{', '.join(conflict.versions)}  -> suggested {conflict.suggested_version}"
        )


@main.command("export")
@click.argument("path", type=_PATH)
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    show_default=True,
)
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output file")
@click.option("--title", default=None, help="Title used in the CSV file name")
@click.option("--compact", is_flag=True, help="Compact JSON output")
def export_cmd(path: Path, fmt: str, output: Path | None, title: str | None, compact: bool) -> None:
    """Export package references found under PATH."""
    refs = scan(path)
    exporter = PackageExporter()
    if fmt == "csv":
        result = exporter.export_csv(refs, title=title)
    else:
        result = exporter.export_json(refs, indented=not compact)

    if output is None:
        output = Path(result.file_name)
    output.write_bytes(result.binary_data)
    click.echo(f"Exported {len(refs)} package references to {output} ({result.data_size} bytes)")


@main.command("audit")
@click.argument("path", type=_PATH)
@click.option("--concurrency", default=8, show_default=True, help="Parallel OSV lookups")
@click.option("--osv-url", default=None, help="OSV API base URL")
def audit_cmd(path: Path, concurrency: int, osv_url: str | None) -> None:
    """Look up known vulnerabilities for every package version under PATH."""
    refs = _scan_or_report(path)
    if not refs:
        return

    reports = asyncio.run(_audit(_distinct_versions(refs), concurrency, osv_url))

    vulnerable = [r for r in reports if r.has_vulnerabilities]
    failed = [r for r in reports if r.error]
    click.echo(f"Checked {len(reports)} package versions: {len(vulnerable)} vulnerable")

    for report in vulnerable:
        severity = report.max_severity.value if report.max_severity else "unknown"
        click.echo(
            f"  {report.package_id} {report.version}: "
            f"{report.vulnerability_count} known ({severity})"
        )
        for vuln in report.vulnerabilities:
            click.echo(f"    - {vuln.id}  {vuln.summary}")

    if failed:
        click.echo(f"\n{len(failed)} lookup(s) failed:", err=True)
        for report in failed:
            click.echo(f"  {report.package_id} {report.version}: {report.error}", err=True)

    if vulnerable:
        sys.exit(1)


async def _audit(
    pairs: list[tuple[str, str]], concurrency: int, osv_url: str | None
) -> list[VulnerabilityReport]:
    async with OsvClient(base_url=osv_url) as client:
        return await client.scan_batch(pairs, concurrency=concurrency)


@main.command("health")
@click.argument("path", type=_PATH)
@click.option("--concurrency", default=8, show_default=True, help="Parallel feed/OSV lookups")
@click.option("--no-vulns", is_flag=True, help="Skip OSV lookups (vulnerabilities count as 0)")
@click.option(
    "--fail-under",
    type=click.IntRange(0, 100),
    default=None,
    help="Exit 1 if any score is lower",
)
@click.option("--json", "as_json", is_flag=True, help="Output scores as JSON")
def health_cmd(
    path: Path, concurrency: int, no_vulns: bool, fail_under: int | None, as_json: bool
) -> None:
    """Score the health of every package version under PATH using nuget.org stats."""
    refs = _scan_or_report(path)
    if not refs:
        return

    pairs = _distinct_versions(refs)
    stats_by_id, reports = asyncio.run(_health(pairs, concurrency, check_vulns=not no_vulns))

    rows: list[dict] = []
    missing: list[tuple[str, str]] = []
    for name, version in pairs:
        stats = stats_by_id.get(name.lower())
        if stats is None:
            missing.append((name, version))
            continue
        report = reports.get((name, version))
        vulns = report.vulnerability_count if report is not None else 0
        score = stats.health(vulns)
        rows.append(
            {
                "package_name": name,
                "version": version,
                "score": score.score,
                "status": score.status.value,
                "total_downloads": stats.total_downloads,
                "published": stats.published.isoformat() if stats.published else None,
                "vulnerability_count": vulns,
                "is_deprecated": stats.is_deprecated,
            }
        )

    if as_json:
        click.echo(json.dumps(rows, indent=2))
    else:
        click.echo(f"Scored {len(rows)} package versions")
        for row in sorted(rows, key=lambda r: (r["score"], r["package_name"].lower())):
            flags = "  [deprecated]" if row["is_deprecated"] else ""
            if row["vulnerability_count"]:
                flags += f"  [{row['vulnerability_count']} vuln]"
            click.echo(
                f"  {row['score']:3d} {row['status']:8s} "
                f"{row['package_name']:40s} {row['version']}{flags}"
            )

    if missing:
        click.echo(f"\n{len(missing)} package(s) not found on the feed:", err=True)
        for name, version in missing:
            click.echo(f"  {name} {version}", err=True)

    if fail_under is not None and any(r["score"] < fail_under for r in rows):
        sys.exit(1)


async def _health(
    pairs: list[tuple[str, str]], concurrency: int, *, check_vulns: bool
) -> tuple[dict[str, PackageStats], dict[tuple[str, str], VulnerabilityReport]]:
    ids: dict[str, str] = {}
    for name, _ in pairs:
        ids.setdefault(name.lower(), name)

    async with NuGetClient() as nuget:
        stats = await nuget.get_stats_batch(list(ids.values()), concurrency=concurrency)
    stats_by_id = {key: s for key, s in zip(ids, stats) if s is not None}

    reports: dict[tuple[str, str], VulnerabilityReport] = {}
    if check_vulns:
        async with OsvClient() as osv:
            for report in await osv.scan_batch(pairs, concurrency=concurrency):
                reports[(report.package_id, report.version)] = report
    return stats_by_id, reports


if __name__ == "__main__":
    main()
