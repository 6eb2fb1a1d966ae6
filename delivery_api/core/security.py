"""
Password hashing, password policy and session tokens (JWT).
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
import logging
import re
import secrets

import jwt
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.bcrypt import BcryptHasher
from pydantic import BaseModel, ValidationError

from delivery_api.core.config import Settings

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes of its input
PASSWORD_MAX_BYTES = 72
PASSWORD_POLICY_MESSAGE = "Password must be at least 8 characters and include both letters and numbers."

RESET_TOKEN_BYTES = 32

# Compared against when no account matches, so unknown emails cost one bcrypt check too
DUMMY_PASSWORD = "dummy-password-1"


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return PasswordHash((BcryptHasher(rounds=rounds),)).hash(DUMMY_PASSWORD)


class PasswordHasher:
    """Salted one-way hashing for passwords and reset tokens (bcrypt)."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._hash = PasswordHash((BcryptHasher(rounds=rounds),))

    def hash(self, plain: str) -> str:
        return self._hash.hash(plain)

    def verify(self, plain: str, hashed: Optional[str]) -> bool:
        if not plain or not hashed:
            return False
        try:
            return self._hash.verify(plain, hashed)
        except (UnknownHashError, ValueError):
            # Malformed stored hash or over-long input
            logger.warning("Password verification failed on an unusable hash or input")
            return False

    def dummy_hash(self) -> str:
        """Stand-in hash at this cost factor for lookups that found no account."""
        return _dummy_hash(self.rounds)


def validate_password_strength(password: str) -> str:
    """Minimum policy: 8+ characters, at least one letter and one digit."""
    if (
        len(password) < PASSWORD_MIN_LENGTH
        or not re.search(r"[A-Za-z]", password)
        or not re.search(r"[0-9]", password)
    ):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long.")
    return password


def generate_reset_token() -> str:
    """32 random bytes, hex-encoded."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


class TokenClaims(BaseModel):
    """Verified identity carried by a session token."""
    id: str
    email: str
    role: str


def create_access_token(
    claims: TokenClaims,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": claims.id,
        "email": claims.email,
        "role": claims.role,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Optional[TokenClaims]:
    """
    Verify signature and expiry.
    Returns None for any token that cannot be trusted.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected access token: {e}")
        return None

    try:
        return TokenClaims(id=payload["sub"], email=payload.get("email"), role=payload.get("role"))
    except ValidationError:
        return None
