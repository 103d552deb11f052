from __future__ import annotations

import os

from services.api.app.services.storage_base import PersistenceAdapter
from services.api.app.services.storage_memory import InMemoryStorageBackend


def get_persistence_adapter() -> PersistenceAdapter:
    """Select a storage backend based on env vars.

    Defaults to the SQL backend (SQLite under .local/ unless DATABASE_URL is set). Set
    DSR_STORAGE=memory for a process-local store that is lost on restart.
    """

    mode = os.getenv("DSR_STORAGE", "sql").strip().lower()

    if mode == "memory":
        return PersistenceAdapter(InMemoryStorageBackend())

    if mode == "sql":
        from services.api.app.db.init_db import init_db
        from services.api.app.services.storage_sql import SqlStorageBackend

        init_db()
        return PersistenceAdapter(SqlStorageBackend())

    raise ValueError(f"Unknown DSR_STORAGE={mode!r}. Expected sql or memory.")
