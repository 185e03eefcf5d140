from __future__ import annotations

import secrets
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from pwdlib import PasswordHash

from app.core.config import settings

password_hash = PasswordHash.recommended()

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return password_hash.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hash.verify(plain_password, hashed_password)


def create_access_token(
    data: dict, expires_delta: Optional[timedelta] = None
) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expires_minutes)
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": "access",
        "nonce": secrets.token_urlsafe(16),
    })
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a token.

    Raises jose's ExpiredSignatureError for expired tokens and JWTError for
    anything else that fails verification.
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])


def generate_reset_code() -> str:
    return f"{secrets.randbelow(1000000):06d}"


def hash_reset_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()
