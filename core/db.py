"""
core/db.py -- SQLAlchemy engine construction shared by auth/store.py and catalog/store.py.

SQLite is the default backend; any SQLAlchemy URL works (swapping to
PostgreSQL is a connection string change, not a rewrite).
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL allows readers to proceed without blocking during writes. Set
    per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _set_foreign_keys(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        # TestClient and FastAPI's threadpool share connections across threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _set_foreign_keys)
        if ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
