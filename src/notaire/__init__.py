"""
Notaire - escrow reconciliation listener.

Watches notarization events on an EVM chain and releases the matching
payment escrows.
"""

__version__ = "0.1.0"
