from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from services.api.app.db.database import db_session
from services.api.app.db.models import StorageRecord
from services.api.app.services.storage_base import StorageError


class SqlStorageBackend:
    """Keyed text storage in the ``storage_records`` table."""

    name = "sql"

    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def read(self, key: str) -> str | None:
        db = self._session_factory()
        try:
            row = db.get(StorageRecord, key)
            return row.value if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"read of {key!r} failed: {e}") from e
        finally:
            db.close()

    def write(self, key: str, text: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(StorageRecord, key)
            if row is None:
                db.add(StorageRecord(key=key, value=text))
            else:
                row.value = text
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"write of {key!r} failed: {e}") from e
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(StorageRecord, key)
            if row is not None:
                db.delete(row)
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"delete of {key!r} failed: {e}") from e
        finally:
            db.close()
