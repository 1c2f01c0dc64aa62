"""
core/db.py -- SQLAlchemy engine factory shared by auth/store.py and catalog/store.py.

Both stores may point at the same database URL; each owns its own tables and
engine. SQLite needs two adjustments that every store relies on, so they live
here instead of being repeated per store.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url.

    check_same_thread=False: FastAPI runs sync routes in a thread pool, so a
    pooled SQLite connection may be used from a thread other than its creator.
    In-memory databases skip WAL (it does not apply to them).
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
        event.listen(engine, "connect", _set_wal_mode)
    return engine
