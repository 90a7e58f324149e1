from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.enums import Role
from ..core.exceptions import DuplicateKeyError
from .model import User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._users: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(int(user_id))

    def get_by_ids(self, user_ids: Sequence[int]) -> List[Optional[User]]:
        with self._lock:
            return [self._users.get(int(i)) for i in user_ids]

    def get_by_username_or_email(self, value: str) -> Optional[User]:
        with self._lock:
            for u in self._users.values():
                if u.username == value or u.email == value.lower():
                    return u
        return None

    def exists(self, *, username: str, email: str) -> bool:
        with self._lock:
            return any(u.username == username or u.email == email for u in self._users.values())

    def create_user(self, *, username: str, email: str, password_hash: str, role: Role) -> int:
        with self._lock:
            if self.exists(username=username, email=email):
                raise DuplicateKeyError(f"duplicate key: username={username!r} or email={email!r}")
            user_id = self._next_id
            self._next_id += 1
            self._users[user_id] = User(
                user_id=user_id,
                username=username,
                email=email,
                password_hash=password_hash,
                role=role,
                created_at=now_utc(),
            )
            return user_id

    def touch_last_login(self, user_id: int, *, at: datetime) -> None:
        with self._lock:
            user = self._users.get(int(user_id))
            if user:
                self._users[user.user_id] = replace(user, last_login=at)
