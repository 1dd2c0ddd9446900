import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from .models import UserRole

BCRYPT_ROUNDS = 10
RESET_CODE_LENGTH = 6


class TokenError(Exception):
    def __init__(self, message: str, *, expired: bool = False):
        super().__init__(message)
        self.expired = expired


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    name: str
    role: UserRole


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


def burn_password_check(password: str) -> None:
    """Spend one bcrypt comparison so unknown accounts cost the same as known ones."""
    verify_password(password, _dummy_hash())


def generate_reset_code(length: int = RESET_CODE_LENGTH) -> str:
    alphabet = "0123456789"
    return "".join(secrets.choice(alphabet) for _ in range(length))


class TokenCodec:
    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=1)):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, claims: SessionClaims, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(claims.user_id),
            "name": claims.name,
            "role": claims.role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenError("Token expired", expired=True) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError("Invalid token") from exc

        try:
            return SessionClaims(
                user_id=int(payload["sub"]),
                name=str(payload.get("name", "")),
                role=UserRole(payload["role"]),
            )
        except (KeyError, ValueError) as exc:
            raise TokenError("Invalid token payload") from exc
