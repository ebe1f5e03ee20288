"""
Pending escrow registry.

In-memory document hash -> escrow id mapping with write-through
persistence. Durability is best-effort: the registry saves the chain
history re-scan, it is not the source of truth, so a failed write is
logged and the in-memory entry is kept.
"""

from typing import Dict, Iterator, List, Optional, Union

from shared.reporter import SystemReporter

from notaire.domain.entities.pending_escrow import PendingEscrowEntry
from notaire.domain.exceptions import (
    InvalidDocumentHashError,
    InvalidEscrowIdError,
    RegistryPersistenceException,
)
from notaire.domain.repositories import IEscrowRegistryStore
from notaire.domain.value_objects.document_hash import DocumentHash, EscrowId
from notaire.infrastructure.monitoring import metrics


class PendingEscrowRegistry:
    """
    Registry of escrows waiting for their notarization event.

    Every mutation is followed synchronously by a save, so memory and
    storage never diverge for longer than one call.
    """

    def __init__(self, store: IEscrowRegistryStore, reporter: SystemReporter):
        """
        Initialize registry.

        Args:
            store: Persistence backend
            reporter: Logger
        """
        self._store = store
        self._reporter = reporter
        self._entries: Dict[str, str] = {}

    def load(self) -> int:
        """
        Load persisted entries, replacing the in-memory mapping.

        Unreadable storage and malformed entries are logged and skipped.

        Returns:
            Number of entries loaded
        """
        try:
            raw = self._store.load()
        except RegistryPersistenceException as e:
            self._reporter.error(
                f"Failed to load escrow mapping: {e.message}",
                context="Registry",
            )
            raw = {}

        entries: Dict[str, str] = {}
        for key, value in raw.items():
            try:
                entry = PendingEscrowEntry.create(key, value)
            except (InvalidDocumentHashError, InvalidEscrowIdError) as e:
                self._reporter.warning(
                    f"Skipping malformed registry entry {key!r}: {e}",
                    context="Registry",
                )
                continue
            entries[entry.document_hash.value] = entry.escrow_id.value

        self._entries = entries
        metrics.pending_escrows.set(len(self._entries))
        self._reporter.info(
            f"Loaded {len(self._entries)} pending escrows",
            context="Registry",
        )
        return len(self._entries)

    def register(
        self,
        document_hash: Union[str, bytes],
        escrow_id: Union[str, int],
    ) -> PendingEscrowEntry:
        """
        Insert or overwrite the escrow for a document hash.

        Args:
            document_hash: 32-byte hash, hex encoded
            escrow_id: Escrow id as decimal string or int

        Returns:
            The stored entry

        Raises:
            InvalidDocumentHashError: If the hash is malformed
            InvalidEscrowIdError: If the escrow id is malformed
        """
        entry = PendingEscrowEntry.create(document_hash, escrow_id)
        previous = self._entries.get(entry.document_hash.value)
        self._entries[entry.document_hash.value] = entry.escrow_id.value

        if previous is not None and previous != entry.escrow_id.value:
            self._reporter.warning(
                f"Document {entry.document_hash.truncated()} remapped "
                f"from escrow {previous} to {entry.escrow_id}",
                context="Registry",
            )

        self._flush()
        return entry

    def get(self, document_hash: Union[str, DocumentHash]) -> Optional[EscrowId]:
        """
        Look up the escrow for a document hash.

        Malformed hashes simply have no entry.
        """
        key = self._key(document_hash)
        if key is None or key not in self._entries:
            return None
        return EscrowId(self._entries[key])

    def remove(self, document_hash: Union[str, DocumentHash]) -> bool:
        """
        Delete the entry for a document hash.

        Returns:
            True if an entry was removed
        """
        key = self._key(document_hash)
        if key is None or key not in self._entries:
            return False

        del self._entries[key]
        self._flush()
        return True

    def size(self) -> int:
        """Number of pending escrows."""
        return len(self._entries)

    def entries(self) -> List[PendingEscrowEntry]:
        """Snapshot of all pending entries."""
        return [
            PendingEscrowEntry(DocumentHash(key), EscrowId(value))
            for key, value in self._entries.items()
        ]

    def __contains__(self, document_hash: object) -> bool:
        if not isinstance(document_hash, (str, DocumentHash)):
            return False
        key = self._key(document_hash)
        return key is not None and key in self._entries

    def __iter__(self) -> Iterator[PendingEscrowEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return self.size()

    @staticmethod
    def _key(document_hash: Union[str, DocumentHash]) -> Optional[str]:
        if isinstance(document_hash, DocumentHash):
            return document_hash.value
        try:
            return DocumentHash(document_hash).value
        except InvalidDocumentHashError:
            return None

    def _flush(self) -> None:
        metrics.pending_escrows.set(len(self._entries))
        try:
            self._store.save(dict(self._entries))
        except RegistryPersistenceException as e:
            self._reporter.error(
                f"Failed to save escrow mapping: {e.message}",
                context="Registry",
            )
