from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_ids(self, user_ids: Sequence[int]) -> List[Optional[User]]:
        raise NotImplementedError

    def get_by_username_or_email(self, value: str) -> Optional[User]:
        raise NotImplementedError

    def exists(self, *, username: str, email: str) -> bool:
        raise NotImplementedError

    def create_user(self, *, username: str, email: str, password_hash: str, role: Role) -> int:
        raise NotImplementedError

    def touch_last_login(self, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError
