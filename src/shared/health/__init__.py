"""
Health check system for services.

Provides Kubernetes-compatible health checks with:
- Overall health status
- Liveness probe support
- Readiness probe support
"""

from shared.health.checks import (
    HealthCheck,
    HealthChecker,
    HealthReport,
    HealthStatus,
)

__all__ = [
    "HealthChecker",
    "HealthStatus",
    "HealthCheck",
    "HealthReport",
]
