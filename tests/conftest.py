"""Shared pytest fixtures for NuGetPulse tests."""

from __future__ import annotations

import pytest
import structlog

from nugetpulse.engines.package_scanner.models import PackageReference


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def _drop_event(logger, method_name, event_dict):
    raise structlog.DropEvent


@pytest.fixture(autouse=True)
def quiet_structlog():
    """Keep log lines out of captured command output."""
    structlog.configure(processors=[_drop_event])
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_ref():
    """Factory for PackageReference facts with sensible defaults."""

    def _make(name: str, version: str, project_file: str = "/src/App/App.csproj", **kw):
        return PackageReference(
            package_name=name, version=version, project_file=project_file, **kw
        )

    return _make


@pytest.fixture
def solution(tmp_path):
    """A small CPM-enabled solution tree with a version conflict on Serilog."""
    (tmp_path / "Directory.Packages.props").write_text(
        "<Project>\n"
        "  <ItemGroup>\n"
        '    <PackageVersion Include="Serilog" Version="3.1.1" />\n'
        '    <PackageVersion Include="Polly" Version="8.2.0" />\n'
        "  </ItemGroup>\n"
        "</Project>\n"
    )
    app = tmp_path / "src" / "App"
    app.mkdir(parents=True)
    (app / "App.csproj").write_text(
        '<Project Sdk="Microsoft.NET.Sdk">\n'
        "  <ItemGroup>\n"
        '    <PackageReference Include="Serilog" />\n'
        '    <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />\n'
        "  </ItemGroup>\n"
        "</Project>\n"
    )
    api = tmp_path / "src" / "Api"
    api.mkdir(parents=True)
    (api / "Api.csproj").write_text(
        '<Project Sdk="Microsoft.NET.Sdk.Web">\n'
        "  <ItemGroup>\n"
        '    <PackageReference Include="Serilog" VersionOverride="4.0.0" />\n'
        '    <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />\n'
        "  </ItemGroup>\n"
        "</Project>\n"
    )
    return tmp_path
