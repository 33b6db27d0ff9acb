"""Tests for the NuGet feed client (HTTP mocked, no network)."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from nugetpulse.engines.health import HealthStatus
from nugetpulse.engines.nuget_registry import NuGetClient, PackageStats
from nugetpulse.engines.nuget_registry.client import (
    DEFAULT_REGISTRATION_URL,
    DEFAULT_SEARCH_URL,
    normalize_framework,
)

SEARCH_PAYLOAD = {
    "totalHits": 1,
    "data": [
        {
            "id": "Newtonsoft.Json",
            "version": "13.0.3",
            "description": "Json.NET is a popular high-performance JSON framework for .NET",
            "totalDownloads": 4_500_000_000,
            "verified": True,
            "authors": ["James Newton-King"],
            "iconUrl": "https://www.nuget.org/icon.png",
            "projectUrl": "https://www.newtonsoft.com/json",
            "tags": ["json"],
            "versions": [
                {"version": "12.0.3", "downloads": 900_000_000},
                {"version": "13.0.3", "downloads": 1_200_000_000},
            ],
        }
    ],
}

REGISTRATION_INDEX = {
    "items": [
        {
            "@id": "https://api.nuget.org/v3/registration5-semver1/newtonsoft.json/index.json#page/1",
            "items": [
                {"catalogEntry": {"version": "12.0.3", "published": "2019-11-09T01:27:30Z"}},
                {
                    "catalogEntry": {
                        "version": "13.0.3",
                        "published": "2023-03-08T07:42:54Z",
                        "licenseExpression": "MIT",
                        "projectUrl": "https://www.newtonsoft.com/json",
                        "dependencyGroups": [
                            {"targetFramework": ".NETFramework4.5"},
                            {"targetFramework": ".NETStandard2.0"},
                            {"targetFramework": ".NETStandard2.0"},
                            {"targetFramework": "net6.0"},
                            {},
                        ],
                    }
                },
            ],
        }
    ]
}


def _client() -> NuGetClient:
    client = NuGetClient.__new__(NuGetClient)
    client._search_url = DEFAULT_SEARCH_URL
    client._registration_url = DEFAULT_REGISTRATION_URL
    client._client = AsyncMock()
    return client


def _ok(payload: dict) -> MagicMock:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = 200
    resp.raise_for_status = MagicMock()
    resp.json = MagicMock(return_value=payload)
    return resp


def _status(status: int) -> MagicMock:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status
    resp.request = MagicMock()
    resp.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError(f"{status}", request=MagicMock(), response=resp)
    )
    return resp


def _routes(**by_prefix):
    """Answer GETs by URL prefix: search / registration / page."""

    async def _get(url, params=None):
        if url == DEFAULT_SEARCH_URL:
            return by_prefix["search"]
        if url.endswith("/index.json"):
            return by_prefix["registration"]
        return by_prefix["page"]

    return AsyncMock(side_effect=_get)


# ── Framework names ──────────────────────────────────────────────────────


class TestNormalizeFramework:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (".NETStandard2.0", "netstandard2.0"),
            (".NETCoreApp3.1", "netcoreapp3.1"),
            (".NETFramework4.7.2", "net4.7.2"),
            (".NET6.0", "net6.0"),
            ("net8.0", "net8.0"),
            (None, ""),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_framework(raw) == expected


# ── Stats ────────────────────────────────────────────────────────────────


class TestPackageStats:
    @pytest.mark.anyio
    async def test_search_and_registration_combined(self):
        client = _client()
        client._client.get = _routes(
            search=_ok(SEARCH_PAYLOAD), registration=_ok(REGISTRATION_INDEX)
        )

        stats = await client.get_package_stats("newtonsoft.json")

        assert stats.id == "Newtonsoft.Json"
        assert stats.version == "13.0.3"
        assert stats.total_downloads == 4_500_000_000
        assert stats.authors == "James Newton-King"
        assert stats.license_expression == "MIT"
        assert stats.published == datetime(2023, 3, 8, 7, 42, 54, tzinfo=timezone.utc)
        assert stats.is_verified
        assert not stats.is_deprecated
        assert [v.version for v in stats.versions] == ["12.0.3", "13.0.3"]
        assert stats.target_frameworks == ["net4.5", "net6.0", "netstandard2.0"]

        search_call = client._client.get.await_args_list[0]
        assert search_call.kwargs["params"]["q"] == "packageid:newtonsoft.json"
        registration_url = client._client.get.await_args_list[1].args[0]
        assert registration_url == f"{DEFAULT_REGISTRATION_URL}/newtonsoft.json/index.json"

    @pytest.mark.anyio
    async def test_deprecated_package(self):
        index = {
            "items": [
                {
                    "items": [
                        {
                            "catalogEntry": {
                                "published": "2020-01-01T00:00:00Z",
                                "deprecation": {"reasons": ["Legacy"], "message": "Use X"},
                            }
                        }
                    ]
                }
            ]
        }
        client = _client()
        client._client.get = _routes(search=_ok(SEARCH_PAYLOAD), registration=_ok(index))

        stats = await client.get_package_stats("Newtonsoft.Json")

        assert stats.is_deprecated
        assert stats.deprecation_reasons == ["Legacy"]

    @pytest.mark.anyio
    async def test_out_of_line_registration_page_followed(self):
        page_url = "https://api.nuget.org/v3/registration5-semver1/newtonsoft.json/page/13.0.1/13.0.3.json"
        index = {"items": [{"@id": page_url}]}
        page = {
            "@id": page_url,
            "items": [{"catalogEntry": {"licenseExpression": "MIT"}}],
        }
        client = _client()
        client._client.get = _routes(
            search=_ok(SEARCH_PAYLOAD), registration=_ok(index), page=_ok(page)
        )

        stats = await client.get_package_stats("Newtonsoft.Json")

        assert stats.license_expression == "MIT"
        assert client._client.get.await_args_list[-1].args[0] == page_url

    @pytest.mark.anyio
    async def test_registration_failure_keeps_search_data(self):
        client = _client()
        client._client.get = _routes(search=_ok(SEARCH_PAYLOAD), registration=_status(404))

        stats = await client.get_package_stats("Newtonsoft.Json")

        assert stats.total_downloads == 4_500_000_000
        assert stats.published is None
        assert stats.license_expression is None
        assert stats.project_url == "https://www.newtonsoft.com/json"

    @pytest.mark.anyio
    async def test_not_on_feed(self):
        client = _client()
        client._client.get = AsyncMock(return_value=_ok({"totalHits": 0, "data": []}))

        assert await client.get_package_stats("Does.Not.Exist") is None
        client._client.get.assert_awaited_once()

    @pytest.mark.anyio
    async def test_search_match_must_be_exact(self):
        client = _client()
        client._client.get = AsyncMock(return_value=_ok(SEARCH_PAYLOAD))

        assert await client.get_package_stats("Newtonsoft") is None

    @pytest.mark.anyio
    async def test_blank_id(self):
        client = _client()
        assert await client.get_package_stats("  ") is None
        client._client.get.assert_not_called()

    @pytest.mark.anyio
    async def test_search_failure_returns_none(self):
        client = _client()
        client._client.get = AsyncMock(return_value=_status(400))

        assert await client.get_package_stats("Newtonsoft.Json") is None

    @pytest.mark.anyio
    async def test_retry_on_server_error(self):
        client = _client()
        responses = iter([_status(503), _ok(SEARCH_PAYLOAD), _ok(REGISTRATION_INDEX)])
        client._client.get = AsyncMock(side_effect=lambda url, params=None: next(responses))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            stats = await client.get_package_stats("Newtonsoft.Json")

        assert stats is not None
        assert client._client.get.call_count == 3

    @pytest.mark.anyio
    async def test_stats_batch_keeps_order(self):
        client = _client()

        async def fake_stats(package_id):
            return None if package_id == "Missing" else PackageStats(id=package_id, version="1.0.0")

        client.get_package_stats = fake_stats  # type: ignore[method-assign]

        result = await client.get_stats_batch(["A", "Missing", "B"], concurrency=2)

        assert [s.id if s else None for s in result] == ["A", None, "B"]


# ── Search ───────────────────────────────────────────────────────────────


class TestSearch:
    @pytest.mark.anyio
    async def test_results(self):
        client = _client()
        client._client.get = AsyncMock(return_value=_ok(SEARCH_PAYLOAD))

        results = await client.search("json", take=3)

        assert [r.id for r in results] == ["Newtonsoft.Json"]
        assert results[0].total_downloads == 4_500_000_000
        client._client.get.assert_awaited_once_with(
            DEFAULT_SEARCH_URL, params={"q": "json", "take": 3, "prerelease": "false"}
        )

    @pytest.mark.anyio
    async def test_blank_query(self):
        client = _client()
        assert await client.search("") == []
        client._client.get.assert_not_called()

    @pytest.mark.anyio
    async def test_timeouts_exhausted_returns_empty(self):
        client = _client()
        client._client.get = AsyncMock(side_effect=httpx.ReadTimeout("timeout"))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            assert await client.search("json") == []
        assert client._client.get.call_count == 3


# ── Config / lifecycle ───────────────────────────────────────────────────


class TestClientConfig:
    def test_urls_from_env(self):
        env = {
            "NUGETPULSE_NUGET_SEARCH_URL": "http://feed.local/query",
            "NUGETPULSE_NUGET_REGISTRATION_URL": "http://feed.local/registration/",
        }
        with patch.dict(os.environ, env):
            client = NuGetClient()
        assert client._search_url == "http://feed.local/query"
        assert client._registration_url == "http://feed.local/registration"

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            client = NuGetClient()
        assert client._search_url == DEFAULT_SEARCH_URL
        assert client._registration_url == DEFAULT_REGISTRATION_URL

    @pytest.mark.anyio
    async def test_context_manager_closes(self):
        client = _client()
        async with client as c:
            assert c is client
        client._client.aclose.assert_awaited_once()


# ── Health from stats ────────────────────────────────────────────────────


class TestStatsHealth:
    NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)

    def test_feeds_health_score(self):
        stats = PackageStats(
            id="Polly",
            version="8.2.0",
            total_downloads=100_000,
            published=datetime(2025, 9, 17, tzinfo=timezone.utc),
        )
        # 60*0.30 + 70*0.30 + 75*0.25 + 100*0.15 = 72.75
        score = stats.health(1, now=self.NOW)
        assert score.score == 73
        assert score.status is HealthStatus.WARNING

    def test_deprecation_counts(self):
        stats = PackageStats(
            id="Old", version="1.0.0", total_downloads=100_000_000, is_deprecated=True
        )
        score = stats.health(now=self.NOW)
        assert score.deprecation_score == 0
        assert score.freshness_score == 50
