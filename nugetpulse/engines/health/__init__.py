"""Package health scoring."""

from nugetpulse.engines.health.score import HealthScore, HealthStatus

__all__ = ["HealthScore", "HealthStatus"]
