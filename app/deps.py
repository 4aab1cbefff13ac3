# app/deps.py
from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.request_context import set_request_context
from app.services.auth_service import AuthService
from app.services.authorization_service import AuthorizationService, Principal

# The Swagger "Authorize" button (OAuth2 password flow) posts to this endpoint.
# auto_error is off so a missing header goes through the same 401 path as a bad token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

logger = logging.getLogger(__name__)


def get_current_principal(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Read the bearer JWT, validate it and re-resolve its user from the database."""
    principal = AuthService.authenticate_token(db, token)
    request.state.user = principal
    set_request_context(user_id=principal.user_id)
    return principal


def require_permission(operation: str):
    def _dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        AuthorizationService.ensure_permission(request=request, principal=principal, operation=operation)
        return principal

    return _dependency
