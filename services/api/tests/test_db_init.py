from pathlib import Path

from sqlalchemy import inspect


def test_init_db_creates_tables(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "dsr_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("DSR_DB_AUTO_CREATE", "true")

    from services.api.app.db.database import get_engine
    from services.api.app.db.init_db import init_db

    init_db()

    inspector = inspect(get_engine())
    assert "storage_records" in set(inspector.get_table_names())


def test_init_db_respects_opt_out(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "dsr_skip.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("DSR_DB_AUTO_CREATE", "no")

    from services.api.app.db.database import get_engine
    from services.api.app.db.init_db import init_db

    init_db()

    assert inspect(get_engine()).get_table_names() == []
