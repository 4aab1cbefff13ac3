from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import Role, User
from app.services.auth import InvalidTokenError, create_access_token, decode_access_token
from app.services.authorization_service import Principal
from app.services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

_BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_HEADERS,
    )


def email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def user_summary(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


class AuthService:
    """Registration, login and bearer-token authentication."""

    @staticmethod
    def register(db: Session, *, name: str, email: str, password: str, role: Role) -> User:
        email = normalize_email(email)
        if email_taken(db, email):
            logger.info("Registration rejected: email already registered email=%s", email)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=Role(role).value,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.info("Registration rejected at commit: email already registered email=%s", email)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
        db.refresh(user)

        logger.info("User registered user_id=%s role=%s", user.id, user.role)
        return user

    @staticmethod
    def login(db: Session, *, email: str, password: str) -> dict:
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Login failed email=%s", normalize_email(email))
            raise _unauthorized("Invalid email or password")

        token = create_access_token(user.id, email=user.email, role=user.role)
        return {
            "access_token": token,
            "token_type": "bearer",
            "user": user_summary(user),
        }

    @staticmethod
    def authenticate_token(db: Session, token: str | None) -> Principal:
        if not token:
            raise _unauthorized("Not authenticated")

        try:
            claims = decode_access_token(token)
        except InvalidTokenError:
            raise _unauthorized("Invalid or expired token")

        user = db.query(User).filter(User.id == claims.user_id).first()
        if not user:
            raise _unauthorized("User not found or token is invalid")

        return Principal(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=Role(user.role),
        )
