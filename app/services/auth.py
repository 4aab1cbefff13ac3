from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY
from app.models.user import Role


class InvalidTokenError(ValueError):
    """Raised when a token cannot be decoded, is expired or carries malformed claims."""


class TokenClaims(BaseModel):
    """Identity facts carried by an access token, validated once at decode time."""

    user_id: str
    email: str
    role: Role
    exp: int
    iat: int | None = None


def create_access_token(
    user_id: str,
    *,
    email: str,
    role: Role | str,
    expires_minutes: int = JWT_EXPIRE_MINUTES,
) -> str:
    """
    "sub" must be a string; "user_id" is duplicated so the claims record
    does not depend on the registered claim name.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "email": email,
        "role": Role(role).value,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise InvalidTokenError("Invalid or expired token") from exc

    if "user_id" not in payload and "sub" in payload:
        payload["user_id"] = payload["sub"]

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTokenError("Token claims are malformed") from exc
