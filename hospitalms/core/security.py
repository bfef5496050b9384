# hospitalms/core/security.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from hospitalms.core.config import Settings, settings as default_settings

# =========
# Passwords
# =========

_pwd_ctx = CryptContext(
    schemes=["bcrypt_sha256", "bcrypt"],
    default="bcrypt_sha256",
    deprecated="auto",
)


def hash_password(plain_password: str) -> str:
    """
    Hash a plain-text password using bcrypt.
    """
    if not isinstance(plain_password, str) or plain_password == "":
        raise ValueError("Password must be a non-empty string")
    return _pwd_ctx.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash or not plain_password:
        return False
    try:
        return _pwd_ctx.verify(plain_password, password_hash)
    except ValueError:
        # malformed hash
        return False


# =====
# JWTs
# =====

class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a token is missing/invalid/expired or claims are malformed."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: Dict[str, Any], expires_at: datetime, cfg: Settings) -> str:
    to_encode: Dict[str, Any] = {
        **claims,
        "iat": int(_utcnow().timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, cfg.JWT_SECRET, algorithm=ALGORITHM)


def create_access_token(
    *,
    subject: str,
    role: str,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
    cfg: Settings = default_settings,
) -> str:
    """
    Create a short-lived Bearer access token carrying the user's role.
    """
    claims: Dict[str, Any] = {
        "sub": subject,
        "type": TokenType.ACCESS.value,
        "role": role,
    }
    if email:
        claims["email"] = email
    minutes = expires_minutes or cfg.ACCESS_EXPIRES_MIN
    return _encode(claims, _utcnow() + timedelta(minutes=minutes), cfg)


def create_refresh_token(
    *,
    subject: str,
    expires_days: Optional[int] = None,
    cfg: Settings = default_settings,
) -> str:
    days = expires_days or cfg.REFRESH_EXPIRES_DAYS
    claims = {"sub": subject, "type": TokenType.REFRESH.value}
    return _encode(claims, _utcnow() + timedelta(days=days), cfg)


def decode_token(token: str, cfg: Settings = default_settings) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidTokenError on failure.
    """
    if not token:
        raise InvalidTokenError("missing_token")
    try:
        payload = jwt.decode(token, cfg.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError as exc:
        # expired signature, invalid signature, bad format
        raise InvalidTokenError("invalid_token") from exc

    if "sub" not in payload or "type" not in payload:
        raise InvalidTokenError("invalid_claims")

    return payload


def is_access_token(payload: Dict[str, Any]) -> bool:
    return payload.get("type") == TokenType.ACCESS.value


def is_refresh_token(payload: Dict[str, Any]) -> bool:
    return payload.get("type") == TokenType.REFRESH.value
