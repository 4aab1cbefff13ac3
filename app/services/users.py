from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.user import Role, User

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def list(db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.desc()).all()

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")
        return user

    @classmethod
    def update_role(cls, db: Session, user_id: str, role: Role) -> User:
        user = cls.get(db, user_id)
        previous_role = user.role
        user.role = Role(role).value
        db.commit()
        db.refresh(user)

        logger.info("User role changed user_id=%s from=%s to=%s", user.id, previous_role, user.role)
        return user
