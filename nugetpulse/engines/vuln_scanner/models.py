"""Data models for the OSV vulnerability scanner.

The ``_Osv*`` pydantic models mirror the subset of the OSV ``/v1/query``
response we read; :class:`VulnerabilityReport` and
:class:`OsvVulnerability` are what callers see.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class OsvSeverity(str, Enum):
    UNKNOWN = "unknown"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | None) -> OsvSeverity:
        key = (value or "").strip().lower()
        try:
            return cls(_SEVERITY_ALIASES.get(key, key))
        except ValueError:
            return cls.UNKNOWN


# GitHub advisories say "moderate" where OSV says "medium".
_SEVERITY_ALIASES = {"moderate": "medium"}

_SEVERITY_RANK = {
    OsvSeverity.UNKNOWN: 0,
    OsvSeverity.LOW: 1,
    OsvSeverity.MEDIUM: 2,
    OsvSeverity.HIGH: 3,
    OsvSeverity.CRITICAL: 4,
}


@dataclass(frozen=True)
class OsvVulnerability:
    id: str
    summary: str
    severity: OsvSeverity = OsvSeverity.UNKNOWN
    details: str | None = None
    cvss_score: str | None = None
    aliases: list[str] = field(default_factory=list)
    reference_url: str | None = None
    published: datetime | None = None
    modified: datetime | None = None


@dataclass
class VulnerabilityReport:
    """Known vulnerabilities for one package version.

    *error* is set when the lookup failed; the vulnerability list is then
    empty and says nothing about the package.
    """

    package_id: str
    version: str
    vulnerabilities: list[OsvVulnerability] = field(default_factory=list)
    error: str | None = None

    @property
    def vulnerability_count(self) -> int:
        return len(self.vulnerabilities)

    @property
    def has_vulnerabilities(self) -> bool:
        return bool(self.vulnerabilities)

    @property
    def max_severity(self) -> OsvSeverity | None:
        if not self.vulnerabilities:
            return None
        return max((v.severity for v in self.vulnerabilities), key=lambda s: s.rank)


# ── wire DTOs ────────────────────────────────────────────────────────────


class _OsvModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _OsvSeverityEntry(_OsvModel):
    type: str | None = None
    score: str | None = None


class _OsvReference(_OsvModel):
    type: str | None = None
    url: str | None = None


class _OsvDatabaseSpecific(_OsvModel):
    severity: str | None = None


class _OsvVuln(_OsvModel):
    id: str | None = None
    summary: str | None = None
    details: str | None = None
    aliases: list[str] | None = None
    published: datetime | None = None
    modified: datetime | None = None
    severity: list[_OsvSeverityEntry] | None = None
    references: list[_OsvReference] | None = None
    database_specific: _OsvDatabaseSpecific | None = None

    def to_vulnerability(self) -> OsvVulnerability:
        first_score = self.severity[0].score if self.severity else None
        db_severity = self.database_specific.severity if self.database_specific else None
        return OsvVulnerability(
            id=self.id or "",
            summary=self.summary or "",
            details=self.details,
            severity=OsvSeverity.parse(db_severity or first_score),
            cvss_score=first_score,
            aliases=list(self.aliases or []),
            reference_url=self.references[0].url if self.references else None,
            published=self.published,
            modified=self.modified,
        )


class OsvQueryResponse(_OsvModel):
    vulns: list[_OsvVuln] | None = None
