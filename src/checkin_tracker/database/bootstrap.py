from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' inside quotes does not end a statement.
    buf: List[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: Optional[Path] = None) -> None:
    ensure_database_exists(db_config)
    sql = Path(schema_path or SCHEMA_PATH).read_text(encoding="utf-8")
    sql = _strip_comments(_strip_create_db_and_use(sql))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied to %s", db_config.get("database"))


DEMO_STATIONS = (
    ("registration", "Shabebik Registration", True, 0),
    ("optics", "Optic et Vision", False, 1),
    ("medical", "Medical Checkup", False, 2),
    ("dental", "Dental Clinic", False, 3),
)

DEMO_ATTENDEES = (
    ("a-1", "Rami Haddad", "12/345", "Beirut", "Beirut", "Achrafieh", "03463479", 3, [34, 31, 6]),
    ("a-2", "Maya Khoury", "12/346", "Mount Lebanon", "Metn", "Jdeideh", "71123456", 1, [27]),
    ("a-3", "Karim Saleh", "7/88", "North", "Tripoli", "Mina", "+961 76 555 010", 2, None),
)

DEMO_PROFILES = (
    ("admin", "Admin Demo", "admin"),
    ("super", "Super Admin Demo", "super_admin"),
    ("medic", "Medical Desk", "medical"),
)


def seed_demo_data(db_config: dict, *, event_id: Optional[str] = None) -> None:
    """Upsert a small demo event: stations, attendees and operator profiles."""

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for station_id, name, is_main, order in DEMO_STATIONS:
            cur.execute(
                """
                INSERT INTO fields(id, name, is_enabled, is_main, sort_order)
                VALUES(%s,%s,1,%s,%s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), is_main=VALUES(is_main), sort_order=VALUES(sort_order)
                """,
                (station_id, name, int(is_main), order),
            )
        for attendee_id, name, record, gov, district, area, phone, qty, ages in DEMO_ATTENDEES:
            cur.execute(
                """
                INSERT INTO attendees(id, event_id, name, record_number, governorate, district, area, phone, quantity, ages)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), quantity=VALUES(quantity), ages=VALUES(ages)
                """,
                (attendee_id, event_id, name, record, gov, district, area, phone, qty,
                 json.dumps(ages) if ages is not None else None),
            )
        for profile_id, display_name, role in DEMO_PROFILES:
            cur.execute(
                """
                INSERT INTO profiles(id, display_name, role) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE display_name=VALUES(display_name), role=VALUES(role)
                """,
                (profile_id, display_name, role),
            )
        conn.commit()
    finally:
        conn.close()
    logger.info("demo data ready (%d stations, %d attendees)", len(DEMO_STATIONS), len(DEMO_ATTENDEES))


def list_tables(db_config: dict) -> List[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
