from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.models.user import Role, User
from app.services.auth_service import normalize_email
from app.services.passwords import hash_password, password_looks_hashed


def ensure_users_table(engine: Engine) -> None:
    inspector = inspect(engine)
    if not inspector.has_table("users"):
        raise RuntimeError("Table users not found. Run the alembic migrations first.")


def resolve_password_hash(password: str) -> str:
    if password_looks_hashed(password):
        return password
    return hash_password(password)


def upsert_admin_user(
    db: Session,
    *,
    email: str,
    name: str,
    password: str | None,
) -> tuple[User, bool]:
    email = normalize_email(email)
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        existing.name = name
        existing.role = Role.ADMIN.value
        if password:
            existing.password_hash = resolve_password_hash(password)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("A password is required to create a new admin.")

    admin = User(
        email=email,
        name=name,
        password_hash=resolve_password_hash(password),
        role=Role.ADMIN.value,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin, True
