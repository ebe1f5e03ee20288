"""
JSON file store for the pending escrow mapping.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict

from notaire.domain.exceptions import RegistryPersistenceException
from notaire.domain.repositories import IEscrowRegistryStore


class JsonFileEscrowStore(IEscrowRegistryStore):
    """
    Mapping persisted as a pretty-printed JSON object.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so a crash never leaves a half-written
    mapping behind.
    """

    def __init__(self, path: str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise RegistryPersistenceException(
                f"Cannot read {self._path}: {e}",
                details={"path": str(self._path)},
            ) from e

        if not isinstance(data, dict):
            raise RegistryPersistenceException(
                f"{self._path} does not contain a JSON object",
                details={"path": str(self._path), "type": type(data).__name__},
            )

        return {str(key): str(value) for key, value in data.items()}

    def save(self, mapping: Dict[str, str]) -> None:
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(mapping, f, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RegistryPersistenceException(
                f"Cannot write {self._path}: {e}",
                details={"path": str(self._path)},
            ) from e
