"""
Notaire-specific health checks.

Checks:
- Contract initialization (blockchain features enabled)
- Event listener state versus pending escrows
- Automatic recovery exhaustion
"""

from shared.health import HealthCheck, HealthReport, HealthStatus

from notaire import __version__
from notaire.application.listener import EscrowReconciliationListener
from notaire.domain.value_objects import ConnectionState


class NotaireHealthChecker:
    """
    Health checker for the escrow reconciliation listener.

    Implements Kubernetes-compatible liveness and readiness probes.
    Missing blockchain configuration degrades readiness instead of
    failing it: the HTTP surface still serves status and diagnostics.
    """

    def __init__(self, listener: EscrowReconciliationListener):
        self._listener = listener

    def check_liveness(self) -> HealthReport:
        """Liveness: the process answers requests."""
        checks = {
            "process": HealthCheck(
                name="process",
                status=HealthStatus.HEALTHY,
                message="Event loop responsive",
            ),
        }
        return HealthReport.from_checks(checks, __version__)

    def check_readiness(self) -> HealthReport:
        """Readiness: contracts are up and pending escrows are being watched."""
        status = self._listener.get_listener_status()
        checks = {
            "contracts": self._check_contracts(status.contracts_initialized),
            "listener": self._check_listener(status),
        }
        return HealthReport.from_checks(checks, __version__)

    def _check_contracts(self, initialized: bool) -> HealthCheck:
        if initialized:
            return HealthCheck(
                name="contracts",
                status=HealthStatus.HEALTHY,
                message="Contracts initialized",
            )
        return HealthCheck(
            name="contracts",
            status=HealthStatus.DEGRADED,
            message="Blockchain features disabled",
        )

    def _check_listener(self, status) -> HealthCheck:
        metadata = {
            "state": status.state.value,
            "pendingCount": status.pending_count,
            "reconnectAttempts": status.reconnect_attempts,
        }

        if status.recovery_exhausted:
            return HealthCheck(
                name="listener",
                status=HealthStatus.UNHEALTHY,
                message="Automatic reconnection exhausted",
                metadata=metadata,
            )

        if status.state == ConnectionState.RECONNECTING:
            return HealthCheck(
                name="listener",
                status=HealthStatus.DEGRADED,
                message="Reconnecting",
                metadata=metadata,
            )

        if status.pending_count > 0 and not status.is_listening:
            return HealthCheck(
                name="listener",
                status=HealthStatus.DEGRADED,
                message="Escrows pending but no subscription attached",
                metadata=metadata,
            )

        return HealthCheck(
            name="listener",
            status=HealthStatus.HEALTHY,
            metadata=metadata,
        )
