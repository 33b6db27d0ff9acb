"""Async OSV (Open Source Vulnerabilities) client for NuGet packages."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable

import httpx
import structlog

from nugetpulse.engines.vuln_scanner.models import OsvQueryResponse, VulnerabilityReport

log = structlog.get_logger("nugetpulse.osv")

DEFAULT_OSV_URL = "https://api.osv.dev/v1"
ECOSYSTEM = "NuGet"

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds


class OsvClient:
    """Thin async wrapper around the OSV ``/query`` endpoint.

    Lookups never raise for transport or decoding problems: a failed lookup
    comes back as a :class:`VulnerabilityReport` with ``error`` set.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        resolved_url = base_url or os.environ.get("NUGETPULSE_OSV_URL", DEFAULT_OSV_URL)
        self._client = httpx.AsyncClient(
            base_url=resolved_url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OsvClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def scan(self, package_id: str, version: str) -> VulnerabilityReport:
        """Look up known vulnerabilities for one package version."""
        payload = {
            "version": version,
            "package": {"name": package_id, "ecosystem": ECOSYSTEM},
        }
        try:
            response = await self._post_with_retry("/query", payload)
            result = OsvQueryResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:  # ValidationError is a ValueError
            log.warning(
                "osv.scan_failed",
                package=package_id,
                version=version,
                error=str(exc),
            )
            return VulnerabilityReport(package_id=package_id, version=version, error=str(exc))

        vulns = [dto.to_vulnerability() for dto in result.vulns or []]
        log.debug("osv.scanned", package=package_id, version=version, vulns=len(vulns))
        return VulnerabilityReport(package_id=package_id, version=version, vulnerabilities=vulns)

    async def scan_batch(
        self,
        packages: Iterable[tuple[str, str]],
        *,
        concurrency: int = 8,
    ) -> list[VulnerabilityReport]:
        """Scan many ``(package_id, version)`` pairs; results keep input order."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _one(package_id: str, version: str) -> VulnerabilityReport:
            async with semaphore:
                return await self.scan(package_id, version)

        return list(await asyncio.gather(*(_one(p, v) for p, v in packages)))

    # ── internal ───────────────────────────────────────────────────────────

    async def _post_with_retry(self, url: str, payload: dict) -> httpx.Response:
        """POST with exponential backoff on 5xx and timeout errors."""
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.post(url, json=payload)

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                log.warning(
                    "osv.server_error",
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
                    "osv.timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = exc

            if attempt < _MAX_RETRIES - 1:
                await asyncio.sleep(_RETRY_BASE_DELAY * (2**attempt))

        raise last_exc  # type: ignore[misc]
