"""Database connection helpers."""

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import psycopg

from petmatch.config import Settings
from petmatch.errors import StoreUnavailable


def get_connection(settings: Optional[Settings] = None) -> psycopg.Connection:
    """Create a new database connection."""
    settings = settings or Settings()
    try:
        return psycopg.connect(settings.get_database_url())
    except psycopg.OperationalError as exc:
        raise StoreUnavailable(f"Database unreachable: {exc}") from exc


@contextmanager
def db_cursor(
    settings: Optional[Settings] = None,
    row_factory: Optional[Any] = None,
) -> Iterator[psycopg.Cursor]:
    """Yield a cursor with automatic commit/rollback."""
    conn = get_connection(settings)
    try:
        cursor_kwargs = {"row_factory": row_factory} if row_factory is not None else {}
        with conn.cursor(**cursor_kwargs) as cursor:
            yield cursor
        conn.commit()
    except psycopg.OperationalError as exc:
        if not conn.broken:
            conn.rollback()
        raise StoreUnavailable(f"Database operation failed: {exc}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
