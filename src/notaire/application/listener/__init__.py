"""
Escrow reconciliation listener.
"""

from notaire.application.listener.connection_manager import ConnectionManager
from notaire.application.listener.escrow_reconciliation_listener import (
    EscrowReconciliationListener,
)
from notaire.application.listener.failure_recovery import (
    FailureKind,
    FailureRecoveryPolicy,
    classify_failure,
)

__all__ = [
    "ConnectionManager",
    "EscrowReconciliationListener",
    "FailureKind",
    "FailureRecoveryPolicy",
    "classify_failure",
]
