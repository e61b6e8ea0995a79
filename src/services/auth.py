"""
Authentication service: registration, login, signed access tokens, profile updates.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs whose signature
and expiry are verified on every lookup.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import bcrypt
from jose import JWTError, jwt

try:
    from ..config import AuthConfig, config
    from ..errors import AuthenticationError, RecordNotFound
    from ..models.records import User
    from ..utils.persistence import USERS, RecordStore
    from ..utils.progress import next_streak
except ImportError:
    from src.config import AuthConfig, config
    from src.errors import AuthenticationError, RecordNotFound
    from src.models.records import User
    from src.utils.persistence import USERS, RecordStore
    from src.utils.progress import next_streak


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
BCRYPT_MAX_BYTES = 72


@dataclass
class AuthResult:
    """Outcome of a successful auth call. ``user`` never contains the password hash."""

    user: Dict[str, Any]
    token: Optional[str] = None
    refresh_token: Optional[str] = None


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def _public(record: Dict[str, Any]) -> Dict[str, Any]:
    return User.from_dict(record).public_dict()


class AuthService:
    """
    Account management over the ``users`` collection.

    Usage:
        auth = AuthService(store)
        result = auth.register("me@example.com", "secret1", "Me")
        user = auth.current_user(result.token)
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[AuthConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.settings = settings or config.auth
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ---------- tokens ----------

    def create_token(self, user: Dict[str, Any]) -> str:
        now = self._clock()
        payload = {
            "sub": user["id"],
            "email": user["email"],
            "role": user["role"],
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=self.settings.token_expiry_hours)).timestamp()),
        }
        return jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry.

        Raises:
            AuthenticationError: Invalid, tampered or expired token
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise AuthenticationError("Invalid session token") from e

        if payload.get("exp", 0) < self._clock().timestamp():
            raise AuthenticationError("Session expired, please log in again")
        return payload

    # ---------- account flows ----------

    def register(self, email: str, password: str, name: str) -> AuthResult:
        """
        Create an account and log it in.

        Raises:
            AuthenticationError: Missing fields, weak password, bad email, or
                email already registered
        """
        if not email or not password or not name or not name.strip():
            raise AuthenticationError("All fields are required")
        self._check_password(password)
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise AuthenticationError("Invalid email address")
        if self.store.first(USERS, email=email):
            raise AuthenticationError("Email already registered")

        now = self._clock().isoformat()
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password=hash_password(password, self.settings.bcrypt_rounds),
            name=name.strip(),
            role="admin" if email == self.settings.admin_email.lower() else "user",
            refresh_token=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        record = self.store.add(USERS, user.to_dict())
        logger.info("Registered user %s (role=%s)", record["id"], record["role"])

        return AuthResult(
            user=_public(record),
            token=self.create_token(record),
            refresh_token=record["refresh_token"],
        )

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials, rotate the refresh token and update the daily streak.

        Raises:
            AuthenticationError: Unknown email, wrong password, or banned user
        """
        if not email or not password:
            raise AuthenticationError("Email and password are required")

        record = self.store.first(USERS, email=email.strip().lower())
        if record is None:
            raise AuthenticationError("Invalid email or password")
        if not verify_password(password, record["password"]):
            raise AuthenticationError("Invalid email or password")
        if record.get("banned"):
            raise AuthenticationError("Account banned, contact the administrators")

        now = self._clock()
        today = now.date()
        last_active = record.get("last_active_date")
        streak = next_streak(
            record.get("streak", 0),
            date.fromisoformat(last_active) if last_active else None,
            today,
        )
        record = self.store.update(
            USERS,
            record["id"],
            {
                "last_login": now.isoformat(),
                "refresh_token": str(uuid.uuid4()),
                "last_active_date": today.isoformat(),
                "streak": streak,
            },
        )
        logger.info("User %s logged in", record["id"])

        return AuthResult(
            user=_public(record),
            token=self.create_token(record),
            refresh_token=record["refresh_token"],
        )

    def current_user(self, token: str) -> Dict[str, Any]:
        """
        Resolve the user behind an access token.

        Raises:
            AuthenticationError: Bad token, unknown or banned user
        """
        payload = self.decode_token(token)
        record = self.store.get(USERS, payload["sub"])
        if record is None:
            raise AuthenticationError("User not found")
        if record.get("banned"):
            raise AuthenticationError("Account banned")
        return _public(record)

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new access token and refresh token."""
        if not refresh_token:
            raise AuthenticationError("Invalid refresh token")
        record = self.store.first(USERS, refresh_token=refresh_token)
        if record is None:
            raise AuthenticationError("Invalid refresh token")
        if record.get("banned"):
            raise AuthenticationError("Account banned")

        record = self.store.update(USERS, record["id"], {"refresh_token": str(uuid.uuid4())})
        return AuthResult(
            user=_public(record),
            token=self.create_token(record),
            refresh_token=record["refresh_token"],
        )

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Change display name and/or password.

        Raises:
            RecordNotFound: Unknown user
            AuthenticationError: Weak password
        """
        if self.store.get(USERS, user_id) is None:
            raise RecordNotFound(USERS, user_id)

        changes: Dict[str, Any] = {"updated_at": self._clock().isoformat()}
        if name and name.strip():
            changes["name"] = name.strip()
        if password:
            self._check_password(password)
            changes["password"] = hash_password(password, self.settings.bcrypt_rounds)

        return _public(self.store.update(USERS, user_id, changes))

    def _check_password(self, password: str) -> None:
        if len(password) < self.settings.min_password_length:
            raise AuthenticationError(
                f"Password must be at least {self.settings.min_password_length} characters"
            )
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise AuthenticationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
