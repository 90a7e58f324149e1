from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, store_errors
from .model import User
from .repository import UserRepository

_SELECT = """
    SELECT user_id, username, email, password_hash, role, is_active, last_login, created_at
    FROM users
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        last_login=row.get("last_login"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with store_errors("load user"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_ids(self, user_ids: Sequence[int]) -> List[Optional[User]]:
        ids = [int(i) for i in user_ids]
        if not ids:
            return []
        placeholders = ", ".join(["%s"] * len(ids))
        with store_errors("load users"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_id IN ({placeholders})", tuple(ids))
            by_id = {u.user_id: u for u in (_to_user(r) for r in fetchall(cur))}
        return [by_id.get(i) for i in ids]

    def get_by_username_or_email(self, value: str) -> Optional[User]:
        with store_errors("load user"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE username=%s OR email=%s LIMIT 1", (value, value.lower()))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def exists(self, *, username: str, email: str) -> bool:
        with store_errors("check user"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS x FROM users WHERE username=%s OR email=%s LIMIT 1", (username, email))
            return fetchone(cur) is not None

    def create_user(self, *, username: str, email: str, password_hash: str, role: Role) -> int:
        with store_errors("create user"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, email, password_hash, role, is_active)
                VALUES(%s,%s,%s,%s,1)
                """,
                (username, email, password_hash, role.value),
            )
            return int(cur.lastrowid)

    def touch_last_login(self, user_id: int, *, at: datetime) -> None:
        with store_errors("update user"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (at, user_id))
