from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import BackendError, DuplicateRecordError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction.

    Commits when the block exits cleanly, rolls back otherwise. Driver errors
    are re-raised as ``BackendError`` so services never import the driver.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise BackendError(str(e)) from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as e:
        conn.rollback()
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateRecordError(str(e)) from e
        raise BackendError(str(e)) from e
    except mysql.connector.Error as e:
        conn.rollback()
        raise BackendError(str(e)) from e
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


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for ``IN (...)``; callers must pass a non-empty sequence."""
    return ", ".join(["%s"] * len(values))
