"""Password hashing and JWT access/refresh tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.shared.exceptions import UnauthenticatedException

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
settings = get_settings()

_LOGIN_URL = f"{settings.api_prefix}/identity/auth/login"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=_LOGIN_URL)
# Anonymous visitors may browse published ads.
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=_LOGIN_URL, auto_error=False)


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Verified claims of a token of the expected type."""

    subject: UUID
    token_type: str
    role: str | None = None
    token_id: str | None = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def _encode(subject: str, role: str | None, token_type: str, lifetime: timedelta, **extra: Any) -> str:
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "exp": datetime.now(UTC) + lifetime,
        **extra,
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, role: str | None = None) -> str:
    """Short-lived bearer token; the role claim is informational only."""
    lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(subject, role, ACCESS_TOKEN, lifetime)


def create_refresh_token(subject: str, token_id: str, role: str | None = None) -> str:
    """Refresh token carrying ``jti`` so the stored row can be rotated."""
    lifetime = timedelta(days=settings.refresh_token_expire_days)
    return _encode(subject, role, REFRESH_TOKEN, lifetime, jti=token_id)


def decode_token(token: str, expected_type: str) -> TokenClaims:
    """Verify signature, expiry, type and subject of ``token``.

    Every failure is reported as ``Unauthenticated``; a refresh token is never
    accepted where an access token is expected and vice versa.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthenticatedException("Invalid token") from exc

    if payload.get("type") != expected_type:
        raise UnauthenticatedException(f"Invalid {expected_type} token")
    try:
        subject = UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise UnauthenticatedException("Token subject is invalid") from exc

    token_id = payload.get("jti")
    if expected_type == REFRESH_TOKEN and not token_id:
        raise UnauthenticatedException("Invalid refresh token")
    return TokenClaims(subject=subject, token_type=expected_type, role=payload.get("role"), token_id=token_id)
