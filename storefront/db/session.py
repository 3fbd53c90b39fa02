from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from storefront.core.config import settings

class Base(DeclarativeBase): pass

def _enable_sqlite_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()

def make_engine(dsn: str, timeout_ms: int = settings.STORE_TIMEOUT_MS, **kwargs) -> Engine:
    # ON DELETE CASCADE/RESTRICT must hold on both backends
    if dsn.startswith("sqlite"):
        eng = create_engine(dsn, **kwargs)
        event.listen(eng, "connect", _enable_sqlite_fks)
        return eng
    connect_args = {"options": f"-c statement_timeout={timeout_ms}"} if dsn.startswith("postgresql") else {}
    return create_engine(dsn, pool_pre_ping=True, connect_args=connect_args, **kwargs)

engine = make_engine(settings.DATABASE_DSN)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
