"""
DocumentHash and EscrowId value objects.
"""

import re
from dataclasses import dataclass
from typing import Union

from notaire.domain.exceptions import InvalidDocumentHashError, InvalidEscrowIdError

_HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")
_DECIMAL_PATTERN = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class DocumentHash:
    """
    Value object representing a 32-byte document fingerprint.

    Business rules:
    - 64 hex characters, with or without a 0x prefix
    - Stored lowercase with a 0x prefix so that registry keys and
      event payloads compare equal
    """

    value: str

    def __post_init__(self):
        """Normalize and validate on creation."""
        raw = self.value
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).hex()
        if not isinstance(raw, str):
            raise InvalidDocumentHashError(
                f"Document hash must be a hex string, got {type(raw).__name__}"
            )

        digits = raw.strip().lower()
        if digits.startswith("0x"):
            digits = digits[2:]

        if not _HASH_PATTERN.match(digits):
            raise InvalidDocumentHashError(
                f"Document hash must be 32 bytes of hex: {raw!r}"
            )

        object.__setattr__(self, "value", f"0x{digits}")

    def truncated(self) -> str:
        """Return truncated hash for logs (e.g., '0xabcd...1234')."""
        return f"{self.value[:6]}...{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EscrowId:
    """
    Value object for an on-chain escrow identifier.

    Kept as a decimal string so ids above 2**53 survive JSON and
    JavaScript clients untouched.
    """

    value: str

    def __post_init__(self):
        """Normalize and validate on creation."""
        raw: Union[str, int] = self.value
        if isinstance(raw, bool):
            raise InvalidEscrowIdError("Escrow id must be an integer, got bool")
        if isinstance(raw, int):
            if raw < 0:
                raise InvalidEscrowIdError(f"Escrow id must be non-negative: {raw}")
            object.__setattr__(self, "value", str(raw))
            return
        if not isinstance(raw, str):
            raise InvalidEscrowIdError(
                f"Escrow id must be a decimal string or int, got {type(raw).__name__}"
            )

        digits = raw.strip()
        if not _DECIMAL_PATTERN.match(digits):
            raise InvalidEscrowIdError(f"Escrow id must be a decimal integer: {raw!r}")

        # Strip leading zeros without going through float.
        object.__setattr__(self, "value", digits.lstrip("0") or "0")

    def as_int(self) -> int:
        """Integer form for contract calls."""
        return int(self.value)

    def __str__(self) -> str:
        return self.value
