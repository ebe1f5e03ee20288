"""
Health check definitions and status types.

Defines health check interface and status enums.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Protocol


class HealthStatus(str, Enum):
    """Health status levels."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheck:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
        }

        if self.message:
            result["message"] = self.message

        if self.metadata:
            result["metadata"] = self.metadata

        return result


@dataclass
class HealthReport:
    """
    Overall health report.

    Aggregates multiple health checks into overall status.
    """

    status: HealthStatus
    checks: Dict[str, HealthCheck]
    version: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_checks(cls, checks: Dict[str, HealthCheck], version: str) -> "HealthReport":
        """
        Build a report whose status is the worst of its checks.

        Args:
            checks: Individual check results by name
            version: Service version

        Returns:
            HealthReport
        """
        statuses = {check.status for check in checks.values()}
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY
        return cls(status=overall, checks=checks, version=version)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
        }

    @property
    def is_healthy(self) -> bool:
        """Check if overall status is healthy."""
        return self.status == HealthStatus.HEALTHY

    @property
    def is_ready(self) -> bool:
        """Check if service is ready (healthy or degraded)."""
        return self.status in (HealthStatus.HEALTHY, HealthStatus.DEGRADED)


class HealthChecker(Protocol):
    """
    Protocol for health checker implementations.

    Each service implements this protocol with service-specific checks.
    """

    def check_liveness(self) -> HealthReport:
        """Liveness: is the process alive and its loop responsive."""
        ...

    def check_readiness(self) -> HealthReport:
        """Readiness: can the service do its job right now."""
        ...
