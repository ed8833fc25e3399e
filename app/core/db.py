# app/core/db.py
import threading
from contextlib import contextmanager
from psycopg2.pool import ThreadedConnectionPool
from .config import settings

_pool = None
_pool_lock = threading.Lock()


def _get_pool() -> ThreadedConnectionPool:
    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                _pool = ThreadedConnectionPool(
                    1, settings.PG_POOL_MAX,
                    host=settings.PG_HOST,
                    port=settings.PG_PORT,
                    dbname=settings.PG_DB,
                    user=settings.PG_USER,
                    password=settings.PG_PASSWORD,
                    sslmode=settings.PG_SSLMODE,
                    options=(
                        f"-c search_path={settings.PG_SCHEMA} "
                        f"-c statement_timeout={settings.PG_STATEMENT_TIMEOUT_MS}"
                    ),
                )
    return _pool


@contextmanager
def get_conn():
    pool = _get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)
