"""Async NuGet feed client: search and registration metadata."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from typing import Any

import httpx
import structlog

from nugetpulse.engines.nuget_registry.models import (
    NuGetSearchResponse,
    PackageSearchResult,
    PackageStats,
    RegistrationCatalogEntry,
    RegistrationIndex,
    RegistrationPage,
    VersionDownload,
)

log = structlog.get_logger("nugetpulse.nuget")

DEFAULT_SEARCH_URL = "https://azuresearch-usnc.nuget.org/query"
DEFAULT_REGISTRATION_URL = "https://api.nuget.org/v3/registration5-semver1"

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds


def normalize_framework(tfm: str | None) -> str:
    """Map registration target frameworks to short TFMs.

    ``".NETStandard2.0"`` -> ``"netstandard2.0"``,
    ``".NETFramework4.7.2"`` -> ``"net4.7.2"``.
    """
    if not tfm:
        return ""
    t = tfm.lower()
    for prefix, short in (
        (".netcoreapp", "netcoreapp"),
        (".netstandard", "netstandard"),
        (".netframework", "net"),
        (".net", "net"),
    ):
        if t.startswith(prefix):
            return short + t[len(prefix):]
    return t


class NuGetClient:
    """Thin async wrapper around the nuget.org search and registration APIs.

    Lookups log and swallow transport errors: a failed search returns ``[]``
    and a failed stats lookup returns ``None``. A missing registration entry
    still yields stats built from the search result alone.
    """

    def __init__(
        self,
        search_url: str | None = None,
        registration_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._search_url = search_url or os.environ.get(
            "NUGETPULSE_NUGET_SEARCH_URL", DEFAULT_SEARCH_URL
        )
        self._registration_url = (
            registration_url
            or os.environ.get("NUGETPULSE_NUGET_REGISTRATION_URL", DEFAULT_REGISTRATION_URL)
        ).rstrip("/")
        self._client = httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> NuGetClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def search(self, query: str, take: int = 8) -> list[PackageSearchResult]:
        """Free-text package search (stable versions only)."""
        if not query or not query.strip():
            return []
        try:
            response = await self._get_with_retry(
                self._search_url,
                {"q": query, "take": take, "prerelease": "false"},
            )
            result = NuGetSearchResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("nuget.search_failed", query=query, error=str(exc))
            return []

        return [
            PackageSearchResult(
                id=d.id,
                version=d.version,
                total_downloads=d.total_downloads,
                description=d.description,
                icon_url=d.icon_url,
            )
            for d in result.data or []
        ]

    async def get_package_stats(self, package_id: str) -> PackageStats | None:
        """Collect download counts and latest-release metadata for *package_id*.

        Returns ``None`` if the package is not on the feed or the search
        request fails.
        """
        if not package_id or not package_id.strip():
            return None

        try:
            response = await self._get_with_retry(
                self._search_url,
                {"q": f"packageid:{package_id}", "take": 1, "prerelease": "false"},
            )
            result = NuGetSearchResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("nuget.search_failed", package=package_id, error=str(exc))
            return None

        wanted = package_id.lower()
        data = next((d for d in result.data or [] if d.id.lower() == wanted), None)
        if data is None:
            log.info("nuget.not_found", package=package_id)
            return None

        try:
            entry = await self._latest_catalog_entry(wanted)
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("nuget.registration_failed", package=package_id, error=str(exc))
            entry = None

        frameworks: list[str] = []
        if entry is not None:
            frameworks = sorted(
                {
                    normalize_framework(g.target_framework)
                    for g in entry.dependency_groups or []
                }
                - {""}
            )

        deprecation = entry.deprecation if entry is not None else None
        authors = data.authors
        if isinstance(authors, list):
            authors = ", ".join(authors)

        stats = PackageStats(
            id=data.id,
            version=data.version,
            total_downloads=data.total_downloads,
            description=data.description,
            authors=authors or None,
            project_url=(entry.project_url if entry is not None else None) or data.project_url,
            license_expression=entry.license_expression if entry is not None else None,
            published=entry.published if entry is not None else None,
            is_verified=data.verified,
            is_deprecated=deprecation is not None,
            deprecation_reasons=list(deprecation.reasons or []) if deprecation else [],
            versions=[VersionDownload(v.version, v.downloads) for v in data.versions or []],
            tags=list(data.tags or []),
            target_frameworks=frameworks,
        )
        log.debug(
            "nuget.stats_fetched",
            package=stats.id,
            downloads=stats.total_downloads,
            deprecated=stats.is_deprecated,
        )
        return stats

    async def get_stats_batch(
        self,
        package_ids: Iterable[str],
        *,
        concurrency: int = 8,
    ) -> list[PackageStats | None]:
        """Fetch stats for many packages; results keep input order."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _one(package_id: str) -> PackageStats | None:
            async with semaphore:
                return await self.get_package_stats(package_id)

        return list(await asyncio.gather(*(_one(p) for p in package_ids)))

    # ── internal ───────────────────────────────────────────────────────────

    async def _latest_catalog_entry(self, lower_id: str) -> RegistrationCatalogEntry | None:
        """Catalog entry of the last leaf on the last registration page.

        Large packages keep their pages out of line; those are followed by
        their ``@id`` URL.
        """
        response = await self._get_with_retry(f"{self._registration_url}/{lower_id}/index.json")
        index = RegistrationIndex.model_validate(response.json())
        if not index.items:
            return None

        last_page = index.items[-1]
        if last_page.items:
            return last_page.items[-1].catalog_entry

        if last_page.url:
            response = await self._get_with_retry(last_page.url)
            page = RegistrationPage.model_validate(response.json())
            if page.items:
                return page.items[-1].catalog_entry

        return None

    async def _get_with_retry(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """GET with exponential backoff on 5xx and timeout errors."""
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(url, params=params)

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                log.warning(
                    "nuget.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = httpx.HTTPStatusError(
                    f"{resp.status_code}", request=resp.request, response=resp
                )
            except httpx.TimeoutException as exc:
                log.warning(
                    "nuget.timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = exc

            if attempt < _MAX_RETRIES - 1:
                await asyncio.sleep(_RETRY_BASE_DELAY * (2**attempt))

        raise last_exc  # type: ignore[misc]
