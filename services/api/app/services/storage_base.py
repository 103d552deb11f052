from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

BASKET_STORAGE_KEY = "un_duty_station_basket"
HISTORY_STORAGE_KEY = "un_duty_station_history"


class StorageError(Exception):
    """Raised by a storage backend when a read or write cannot be completed."""


class ParseError(Exception):
    """Raised when persisted text is not a readable collection."""


class StorageBackend(Protocol):
    name: str

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, text: str) -> None: ...

    def delete(self, key: str) -> None: ...


class PersistenceAdapter:
    """Best-effort keyed text storage.

    Reads never raise: a backend failure is logged and reported as a missing key, which
    callers treat as an empty collection. Writes never raise either; the caller's
    in-memory state stays authoritative and the write is simply lost.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def get(self, key: str) -> str | None:
        try:
            return self._backend.read(key)
        except StorageError as e:
            logger.error("Error loading %r from %s storage: %s", key, self._backend.name, e)
            return None

    def set(self, key: str, text: str) -> bool:
        try:
            self._backend.write(key, text)
        except StorageError as e:
            logger.error("Error saving %r to %s storage: %s", key, self._backend.name, e)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._backend.delete(key)
        except StorageError as e:
            logger.error("Error removing %r from %s storage: %s", key, self._backend.name, e)
            return False
        return True
