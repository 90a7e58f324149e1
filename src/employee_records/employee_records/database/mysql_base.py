from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..common.logging import get_logger
from ..core.exceptions import DuplicateKeyError, StoreFailure
from .connection import DatabaseConnection

log = get_logger(__name__)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate mysql-connector errors into StoreFailure (never retried)."""
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateKeyError(f"{operation}: duplicate key ({e.msg})") from e
        log.error("Integrity error during %s", operation, exc_info=True)
        raise StoreFailure(f"{operation}: {e.msg}") from e
    except mysql.connector.Error as e:
        log.error("Store error during %s", operation, exc_info=True)
        raise StoreFailure(f"{operation}: {e}") from e


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
