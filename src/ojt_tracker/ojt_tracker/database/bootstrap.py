from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "ojt12345"


def _connect(target: DBConfig, *, with_database: bool = True):
    return mysql.connector.connect(use_pure=True, **target.connect_kwargs(with_database=with_database))


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql names a database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ``;`` outside of quoted strings."""
    buf: list[str] = []
    quote: str | None = None
    escaped = False

    for ch in sql:
        buf.append(ch)
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    sql = _strip_comments(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8")))
    with closing(_connect(target)) as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    with closing(_connect(target, with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("schema applied from %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("seed applied from %s", seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset) one account per role for local development."""
    target = DBConfig.from_dict(db_config)
    demo = [
        ("Admin Demo", "admin@ojt.local", "admin", None),
        ("Supervisor Demo", "supervisor@ojt.local", "supervisor", "Engineering"),
        ("Trainee Demo", "ojt@ojt.local", "ojt", "Engineering"),
    ]

    with closing(_connect(target)) as conn:
        cur = conn.cursor(dictionary=True)
        for full_name, email, role, department in demo:
            password_hash = generate_password_hash(DEMO_PASSWORD)
            cur.execute("SELECT user_id FROM profiles WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE profiles
                    SET full_name=%s, password_hash=%s, role=%s, department=%s, is_active=1
                    WHERE email=%s
                    """,
                    (full_name, password_hash, role, department, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO profiles (full_name, email, password_hash, role, department)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (full_name, email, password_hash, role, department),
                )
        conn.commit()


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    with closing(_connect(target)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
