"""
Tests for NotaireHealthChecker.
"""

from shared.health import HealthStatus

from notaire.application.listener import (
    ConnectionManager,
    EscrowReconciliationListener,
)
from notaire.domain.exceptions import RPCConnectionException
from notaire.infrastructure.monitoring.notaire_health_checker import (
    NotaireHealthChecker,
)
from tests.helpers import FakeConnector, make_hash


def test_liveness_is_always_healthy(listener):
    report = NotaireHealthChecker(listener).check_liveness()

    assert report.is_healthy
    assert report.to_dict()["checks"]["process"]["status"] == "healthy"


def test_ready_when_listening(listener):
    listener.register_escrow(make_hash(1), "1")

    report = NotaireHealthChecker(listener).check_readiness()

    assert report.status == HealthStatus.HEALTHY
    assert report.checks["listener"].metadata["pendingCount"] == 1


def test_idle_with_no_escrows_is_healthy(listener):
    listener.start()

    assert NotaireHealthChecker(listener).check_readiness().is_healthy


def test_disabled_blockchain_is_degraded_but_ready(
    registry, scheduler, listener_config, reporter
):
    connection = ConnectionManager(
        FakeConnector(missing=["rpc_url"]), "DocumentHashRecorded", reporter
    )
    listener = EscrowReconciliationListener(
        connection, registry, scheduler, listener_config, reporter
    )
    listener.start()

    report = NotaireHealthChecker(listener).check_readiness()

    assert report.status == HealthStatus.DEGRADED
    assert report.is_ready
    assert report.checks["contracts"].message == "Blockchain features disabled"


async def test_exhausted_recovery_is_unhealthy(listener, ledger, scheduler):
    listener.register_escrow(make_hash(1), "1")
    ledger.subscribe_error = RPCConnectionException("refused")
    ledger.fail(RPCConnectionException("refused"))
    await scheduler.advance(300)

    report = NotaireHealthChecker(listener).check_readiness()

    assert report.status == HealthStatus.UNHEALTHY
    assert not report.is_ready


async def test_reconnecting_is_degraded(listener, ledger):
    listener.register_escrow(make_hash(1), "1")
    ledger.fail(RPCConnectionException("refused"))

    report = NotaireHealthChecker(listener).check_readiness()

    assert report.status == HealthStatus.DEGRADED
    assert report.checks["listener"].message == "Reconnecting"
