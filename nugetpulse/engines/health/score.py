"""Composite package health score (0–100)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

_WEIGHT_DOWNLOADS = 0.30
_WEIGHT_FRESHNESS = 0.30
_WEIGHT_VULNERABILITIES = 0.25
_WEIGHT_DEPRECATION = 0.15

# (minimum total downloads, score), checked top-down
_DOWNLOAD_TIERS = [
    (10_000_000, 100),
    (1_000_000, 80),
    (100_000, 60),
    (10_000, 40),
    (1_000, 20),
]
_DOWNLOAD_FLOOR = 5

# (maximum days since last publish, score), checked top-down
_FRESHNESS_TIERS = [
    (30, 100),
    (90, 85),
    (180, 70),
    (365, 50),
    (730, 30),
]
_FRESHNESS_FLOOR = 10
_FRESHNESS_UNKNOWN = 50

_VULN_PENALTY = 25


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class HealthScore:
    score: int
    downloads_score: int
    freshness_score: int
    vulnerability_score: int
    deprecation_score: int
    vulnerability_count: int
    is_deprecated: bool

    @property
    def status(self) -> HealthStatus:
        if self.score >= 80:
            return HealthStatus.HEALTHY
        if self.score >= 60:
            return HealthStatus.WARNING
        return HealthStatus.CRITICAL

    @classmethod
    def compute(
        cls,
        total_downloads: int,
        last_published: datetime | None,
        vulnerability_count: int,
        is_deprecated: bool,
        *,
        now: datetime | None = None,
    ) -> HealthScore:
        """Weighted score: downloads 30%, freshness 30%, vulnerabilities 25%,
        deprecation 15%.

        Naive *last_published* values are taken as UTC. An unknown publish
        date scores a neutral 50 for freshness.
        """
        dl_score = next(
            (score for floor, score in _DOWNLOAD_TIERS if total_downloads >= floor),
            _DOWNLOAD_FLOOR,
        )

        if last_published is None:
            freshness = _FRESHNESS_UNKNOWN
        else:
            if last_published.tzinfo is None:
                last_published = last_published.replace(tzinfo=timezone.utc)
            now = now or datetime.now(timezone.utc)
            age_days = (now - last_published).total_seconds() / 86400
            freshness = next(
                (score for limit, score in _FRESHNESS_TIERS if age_days <= limit),
                _FRESHNESS_FLOOR,
            )

        vuln_score = max(0, 100 - vulnerability_count * _VULN_PENALTY)
        dep_score = 0 if is_deprecated else 100

        composite = round(
            dl_score * _WEIGHT_DOWNLOADS
            + freshness * _WEIGHT_FRESHNESS
            + vuln_score * _WEIGHT_VULNERABILITIES
            + dep_score * _WEIGHT_DEPRECATION
        )

        return cls(
            score=composite,
            downloads_score=dl_score,
            freshness_score=freshness,
            vulnerability_score=vuln_score,
            deprecation_score=dep_score,
            vulnerability_count=vulnerability_count,
            is_deprecated=is_deprecated,
        )
