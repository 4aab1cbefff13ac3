from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import require_permission
from app.schemas.user import UserEnvelope, UserRead, UserRoleUpdate
from app.services.authorization_service import Principal
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def list_users(
    _principal: Principal = Depends(require_permission("users:list")),
    db: Session = Depends(get_db),
):
    return UserService.list(db)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: str,
    _principal: Principal = Depends(require_permission("users:read")),
    db: Session = Depends(get_db),
):
    return UserService.get(db, user_id)


@router.patch("/{user_id}", response_model=UserEnvelope)
def update_user_role(
    user_id: str,
    payload: UserRoleUpdate,
    _principal: Principal = Depends(require_permission("users:update_role")),
    db: Session = Depends(get_db),
):
    user = UserService.update_role(db, user_id, payload.role)
    return {"message": "User role updated successfully", "user": user}
