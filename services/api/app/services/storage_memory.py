from __future__ import annotations

from services.api.app.services.storage_base import StorageError


class InMemoryStorageBackend:
    """Process-local storage for tests and local dev.

    ``max_bytes`` caps the total stored size the way browser storage quotas do; a write
    that would exceed it fails with StorageError and leaves the previous value in place.
    """

    name = "memory"

    def __init__(self, *, max_bytes: int | None = None) -> None:
        self._values: dict[str, str] = {}
        self._max_bytes = max_bytes

    def read(self, key: str) -> str | None:
        return self._values.get(key)

    def write(self, key: str, text: str) -> None:
        if self._max_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._values.items() if k != key)
            if others + len(text.encode("utf-8")) > self._max_bytes:
                raise StorageError(f"quota of {self._max_bytes} bytes exceeded")
        self._values[key] = text

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)
