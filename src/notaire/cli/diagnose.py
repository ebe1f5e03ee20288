"""
Listener diagnostics.

Provider check, then event query, then status; reconnects once when the
listener is idle and reports the state afterwards.
"""

import asyncio
from typing import Any, Dict

from notaire.application.listener import EscrowReconciliationListener


async def run_diagnostics(
    listener: EscrowReconciliationListener,
    settle_seconds: float = 3.0,
) -> Dict[str, Any]:
    """
    Run the diagnostic sequence.

    Args:
        listener: Started listener
        settle_seconds: Wait after a reconnect before re-checking

    Returns:
        Report with one section per step; stops after a failed provider check
    """
    report: Dict[str, Any] = {}

    report["provider"] = await listener.test_provider_connection()
    if not report["provider"]["connected"]:
        report["ok"] = False
        return report

    report["events"] = await listener.test_event_listener()
    status = listener.get_listener_status()
    report["status"] = status.to_dict()

    if not status.is_listening:
        report["reconnected"] = listener.reconnect()
        await asyncio.sleep(settle_seconds)
        report["after_reconnect"] = {
            "status": listener.get_listener_status().to_dict(),
            "provider": await listener.test_provider_connection(),
            "events": await listener.test_event_listener(),
        }

    report["ok"] = bool(report["events"].get("working"))
    return report
