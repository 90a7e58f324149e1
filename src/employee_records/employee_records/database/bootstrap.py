from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path
from typing import Iterable, Union

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.logging import get_logger
from .connection import DBConfig, DatabaseConnection

log = get_logger(__name__)

DEMO_USERS = (
    ("admin", "admin@example.com", "admin123", "ADMIN"),
    ("employee", "employee@example.com", "employee123", "EMPLOYEE"),
)

# employee_id, name, age, class, subjects, department, position, salary, is_active
DEMO_EMPLOYEES = (
    ("EMP001", "Alice Nguyen", 29, "A1", ["Math", "Physics"], "Engineering", "Developer", 52000, True),
    ("EMP002", "Bao Tran", 35, "A2", ["Chemistry"], "Engineering", "Team Lead", 68000, True),
    ("EMP003", "Chi Le", 41, "B1", ["History"], "HR", "Recruiter", 45000, True),
    ("EMP004", "Dung Pham", 52, "B1", ["Economics"], "Finance", "Accountant", 58000, False),
    ("EMP005", "Hoa Vo", 24, "A1", ["Biology"], None, "Intern", None, True),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
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


def _connection(db_config: dict) -> DatabaseConnection:
    return DatabaseConnection(DBConfig.from_dict(db_config))


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = _connection(db_config)
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: Union[str, Path]) -> None:
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(_strip_comments(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    log.info("Applied schema from %s", schema_path)


def ensure_demo_data(db_config: dict) -> None:
    """Upsert the demo accounts; add demo employees when the table is empty."""
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor(dictionary=True)

        for username, email, password, role in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET email=%s, password_hash=%s, role=%s, is_active=1 WHERE username=%s",
                    (email, password_hash, role, username),
                )
            else:
                cur.execute(
                    "INSERT INTO users (username, email, password_hash, role) VALUES (%s, %s, %s, %s)",
                    (username, email, password_hash, role),
                )

        cur.execute("SELECT user_id FROM users WHERE username=%s", ("admin",))
        admin_id = int(cur.fetchone()["user_id"])

        cur.execute("SELECT COUNT(*) AS n FROM employees")
        if int(cur.fetchone()["n"]) == 0:
            now = now_utc()
            for employee_id, name, age, class_name, subjects, dept, position, salary, active in DEMO_EMPLOYEES:
                cur.execute(
                    """
                    INSERT INTO employees (employee_id, name, age, class_name, subjects, salary, department,
                                           position, hire_date, is_active, created_by, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        employee_id, name, age, class_name, json.dumps(subjects), salary, dept,
                        position, date(2024, 1, 15), 1 if active else 0, admin_id, now, now,
                    ),
                )
            log.info("Inserted %d demo employees", len(DEMO_EMPLOYEES))

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
