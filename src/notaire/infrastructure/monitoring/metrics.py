"""
Prometheus metrics collection.
"""

from prometheus_client import Counter, Gauge

# ============================================================
# Event Metrics
# ============================================================

events_received_total = Counter(
    "notaire_events_received_total",
    "DocumentHashRecorded events delivered to the listener",
    ["matched"],
)

# ============================================================
# Escrow Metrics
# ============================================================

escrow_releases_total = Counter(
    "notaire_escrow_releases_total",
    "Escrow release transactions",
    ["status"],
)

pending_escrows = Gauge(
    "notaire_pending_escrows",
    "Escrows waiting for their notarization event",
)

# ============================================================
# Connection Metrics
# ============================================================

reconnect_attempts_total = Counter(
    "notaire_reconnect_attempts_total",
    "Scheduled reconnection attempts",
    ["trigger"],
)

listener_active = Gauge(
    "notaire_listener_active",
    "1 while an event subscription is attached",
)
