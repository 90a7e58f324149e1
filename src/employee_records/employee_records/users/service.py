from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.model import Actor
from ..auth.policy import AuthorizationPolicy
from ..common.datetime_utils import now_utc
from ..common.logging import get_logger
from ..common.validators import is_valid_email, require_min_length
from ..core.constants import DEFAULT_TOKEN_MAX_AGE_SECONDS
from ..core.enums import Operation, Role
from ..core.exceptions import AlreadyExists, AuthenticationError, AuthenticationRequired, DuplicateKeyError, ValidationError
from .model import User
from .repository import UserRepository

log = get_logger(__name__)


@dataclass(frozen=True)
class AuthPayload:
    token: str
    user: User


class TokenService:
    """Signed, expiring bearer tokens carrying (user_id, role)."""

    def __init__(self, secret_key: str, *, max_age_seconds: int = DEFAULT_TOKEN_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt="employee-records-auth")
        self._max_age = int(max_age_seconds)

    def issue(self, user: User) -> str:
        return self._serializer.dumps({"user_id": user.user_id, "role": user.role.value})

    def verify(self, token: str) -> Optional[int]:
        """Return the user id in ``token``, or None when invalid/expired."""
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            log.info("Rejected expired token")
            return None
        except BadSignature:
            log.info("Rejected token with bad signature")
            return None
        try:
            return int(data["user_id"])
        except (KeyError, TypeError, ValueError):
            return None


class AuthService:
    """Use cases: register, login, resolve the caller of a request."""

    def __init__(self, users: UserRepository, tokens: TokenService, *, policy: Optional[AuthorizationPolicy] = None):
        self._users = users
        self._tokens = tokens
        self._policy = policy or AuthorizationPolicy()

    def register(self, *, username: str, email: str, password: str, role: Role = Role.EMPLOYEE) -> AuthPayload:
        username = str(username or "").strip()
        email = str(email or "").strip().lower()
        if not isinstance(password, str):
            password = ""

        errors = []
        if len(username) < 3:
            errors.append("Username must be at least 3 characters long")
        if not is_valid_email(email):
            errors.append("Valid email is required")
        try:
            require_min_length(password, "Password", 6)
        except ValidationError as e:
            errors.append(str(e))
        if errors:
            raise ValidationError("Validation failed", errors)

        if self._users.exists(username=username, email=email):
            raise AlreadyExists("User already exists")

        try:
            user_id = self._users.create_user(
                username=username,
                email=email,
                password_hash=generate_password_hash(password),
                role=Role(role),
            )
        except DuplicateKeyError:
            # Lost the race against a concurrent registration.
            raise AlreadyExists("User already exists")

        user = self._users.get_by_id(user_id)
        log.info("Registered user %s (%s) role=%s", user_id, username, user.role.value)
        return AuthPayload(token=self._tokens.issue(user), user=user)

    def login(self, username: str, password: str) -> AuthPayload:
        user = self._users.get_by_username_or_email(str(username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password if isinstance(password, str) else "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        self._users.touch_last_login(user.user_id, at=now_utc())
        user = self._users.get_by_id(user.user_id)
        return AuthPayload(token=self._tokens.issue(user), user=user)

    def actor_for_user_id(self, user_id: Optional[int]) -> Optional[Actor]:
        """Actor for a verified user id; None if the account is gone or disabled."""
        if user_id is None:
            return None
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            return None
        return Actor(id=user.user_id, role=user.role, is_active=user.is_active)

    def actor_for_token(self, token: Optional[str]) -> Optional[Actor]:
        if not token:
            return None
        return self.actor_for_user_id(self._tokens.verify(token))

    def me(self, actor: Optional[Actor]) -> User:
        self._policy.authorize(actor, Operation.ME)
        user = self._users.get_by_id(actor.id)
        if not user:
            raise AuthenticationRequired("Not authenticated")
        return user
