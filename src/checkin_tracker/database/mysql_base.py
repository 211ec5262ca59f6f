from __future__ import annotations

import asyncio
import json
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import mysql.connector

from ..core.exceptions import StoreError
from .connection import DatabaseConnection

T = TypeVar("T")


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


async def run_db(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking repository call off the event loop.

    Driver errors surface as ``StoreError`` so callers can retry them.
    """

    try:
        return await asyncio.to_thread(fn, *args, **kwargs)
    except mysql.connector.Error as exc:
        raise StoreError(str(exc)) from exc


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
    """``(%s,%s,...)`` placeholder list plus its parameters."""
    values = tuple(values)
    return "(" + ",".join(["%s"] * len(values)) + ")", values


def escape_like(pattern: str) -> str:
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def load_json(value: Any) -> Any:
    """JSON columns arrive as ``str`` or ``bytes`` depending on the driver."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
