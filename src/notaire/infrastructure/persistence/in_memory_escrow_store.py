"""
In-memory escrow store.
"""

from typing import Dict

from notaire.domain.repositories import IEscrowRegistryStore


class InMemoryEscrowStore(IEscrowRegistryStore):
    """Non-durable store for tests and dry runs."""

    def __init__(self, initial: Dict[str, str] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self) -> Dict[str, str]:
        return dict(self._data)

    def save(self, mapping: Dict[str, str]) -> None:
        self._data = dict(mapping)
        self.save_count += 1
