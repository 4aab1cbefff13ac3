from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import HTTPException, Request, status

from app.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated user resolved for the current request."""

    user_id: str
    email: str
    name: str
    role: Role

    @property
    def id(self) -> str:
        return self.user_id


_ADMIN_ONLY = frozenset({Role.ADMIN})
_ANY_STAFF = frozenset({Role.ADMIN, Role.EMPLOYEE})

# operation -> roles allowed to run it
PERMISSIONS: Mapping[str, frozenset[Role]] = {
    "customers:create": _ADMIN_ONLY,
    "customers:list": _ANY_STAFF,
    "customers:read": _ANY_STAFF,
    "customers:update": _ADMIN_ONLY,
    "customers:delete": _ADMIN_ONLY,
    "tasks:create": _ADMIN_ONLY,
    "tasks:list": _ANY_STAFF,
    "tasks:update_status": _ANY_STAFF,
    "users:list": _ADMIN_ONLY,
    "users:read": _ADMIN_ONLY,
    "users:update_role": _ADMIN_ONLY,
    "metrics:read": _ADMIN_ONLY,
}


def is_allowed(operation: str, role: Role | str | None) -> bool:
    """Pure policy lookup. Unknown operations and unknown roles are denied."""
    allowed = PERMISSIONS.get(operation)
    if not allowed or role is None:
        return False
    try:
        return Role(role) in allowed
    except ValueError:
        return False


def can_mutate(principal: Principal, owner_id: str | None) -> bool:
    """A principal may mutate an owned resource iff it is an admin or its owner."""
    if principal.role == Role.ADMIN:
        return True
    return owner_id is not None and principal.user_id == owner_id


class AuthorizationService:
    """Centralize RBAC and ownership checks for protected endpoints."""

    @staticmethod
    def log_access_denied(*, reason: str, principal: Principal, operation: str, request: Request | None) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        logger.warning(
            "Access denied (%s): user_id=%s user_role=%s operation=%s endpoint=%s",
            reason,
            principal.user_id,
            principal.role.value,
            operation,
            endpoint,
        )

    @classmethod
    def ensure_permission(cls, *, request: Request | None, principal: Principal, operation: str) -> None:
        if not is_allowed(operation, principal.role):
            cls.log_access_denied(
                reason="role_denied",
                principal=principal,
                operation=operation,
                request=request,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    @classmethod
    def ensure_can_mutate(
        cls,
        *,
        principal: Principal,
        owner_id: str | None,
        operation: str,
        detail: str,
        request: Request | None = None,
    ) -> None:
        if not can_mutate(principal, owner_id):
            cls.log_access_denied(
                reason="ownership_denied",
                principal=principal,
                operation=operation,
                request=request,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
