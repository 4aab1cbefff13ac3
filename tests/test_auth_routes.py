from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import validation_exception_handler
from app.models.user import User
from app.routers.auth import router as auth_router
from app.routers.users import router as users_router
from app.services import auth_service
from app.services.auth import create_access_token, decode_access_token
from tests.fixtures_data import REGISTER_PAYLOAD


def _build_client() -> tuple[TestClient, object]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = testing_session_local()

    app = FastAPI()
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.dependency_overrides[get_db] = lambda: db

    return TestClient(app), db


def test_register_returns_user_without_password_hash():
    client, db = _build_client()

    response = client.post("/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["email"] == REGISTER_PAYLOAD["email"]
    assert body["user"]["role"] == "EMPLOYEE"
    assert "password_hash" not in body["user"]
    assert "password" not in body["user"]

    stored = db.query(User).filter(User.email == REGISTER_PAYLOAD["email"]).first()
    assert stored is not None
    assert stored.password_hash != REGISTER_PAYLOAD["password"]


def test_register_same_email_twice_conflicts():
    client, _ = _build_client()

    first = client.post("/auth/register", json=REGISTER_PAYLOAD)
    second = client.post(
        "/auth/register",
        json={**REGISTER_PAYLOAD, "email": REGISTER_PAYLOAD["email"].upper(), "name": "Someone Else"},
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Email already registered"


def test_register_rejects_short_password_and_unknown_role_with_400():
    client, _ = _build_client()

    short_password = client.post("/auth/register", json={**REGISTER_PAYLOAD, "password": "short"})
    bad_role = client.post("/auth/register", json={**REGISTER_PAYLOAD, "role": "MANAGER"})
    bad_email = client.post("/auth/register", json={**REGISTER_PAYLOAD, "email": "not-an-email"})

    assert short_password.status_code == 400
    assert bad_role.status_code == 400
    assert bad_email.status_code == 400


def test_login_with_wrong_password_is_unauthorized():
    client, _ = _build_client()
    client.post("/auth/register", json=REGISTER_PAYLOAD)

    response = client.post(
        "/auth/login",
        json={"email": REGISTER_PAYLOAD["email"], "password": "WrongPass123"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_login_with_unknown_email_is_unauthorized():
    client, _ = _build_client()

    response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "SecurePass123"})

    assert response.status_code == 401


def test_login_token_embeds_stored_role():
    client, db = _build_client()
    client.post("/auth/register", json={**REGISTER_PAYLOAD, "role": "ADMIN"})

    response = client.post(
        "/auth/login",
        json={"email": REGISTER_PAYLOAD["email"], "password": REGISTER_PAYLOAD["password"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "ADMIN"

    claims = decode_access_token(body["access_token"])
    stored = db.query(User).filter(User.email == REGISTER_PAYLOAD["email"]).first()
    assert claims.role.value == stored.role
    assert claims.user_id == stored.id
    assert claims.email == stored.email


def test_token_form_endpoint_accepts_email_as_username():
    client, _ = _build_client()
    client.post("/auth/register", json=REGISTER_PAYLOAD)

    response = client.post(
        "/auth/token",
        data={"username": REGISTER_PAYLOAD["email"], "password": REGISTER_PAYLOAD["password"]},
    )

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_protected_route_without_token_is_unauthorized_not_forbidden():
    client, _ = _build_client()

    response = client.get("/users")

    assert response.status_code == 401
    assert response.headers.get("WWW-Authenticate") == "Bearer"


def test_protected_route_with_invalid_token_is_unauthorized():
    client, _ = _build_client()

    response = client.get("/users", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_token_of_deleted_user_is_rejected():
    client, db = _build_client()
    user = User(name="Gone", email="gone@example.com", password_hash="hashed", role="ADMIN")
    db.add(user)
    db.commit()
    token = create_access_token(user.id, email=user.email, role=user.role)

    assert client.get("/users", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    db.delete(user)
    db.commit()
    response = client.get("/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "User not found or token is invalid"


def test_guard_uses_stored_role_over_token_role():
    client, db = _build_client()
    user = User(name="Demoted", email="demoted@example.com", password_hash="hashed", role="EMPLOYEE")
    db.add(user)
    db.commit()
    token = create_access_token(user.id, email=user.email, role="ADMIN")

    response = client.get("/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_register_race_on_unique_email_is_reported_as_conflict(monkeypatch):
    client, db = _build_client()
    client.post("/auth/register", json=REGISTER_PAYLOAD)
    monkeypatch.setattr(auth_service, "email_taken", lambda *args, **kwargs: False)

    response = client.post("/auth/register", json={**REGISTER_PAYLOAD, "name": "Late Writer"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"
    assert db.query(User).count() == 1

    follow_up = client.post("/auth/register", json={**REGISTER_PAYLOAD, "email": "second@example.com"})
    assert follow_up.status_code == 201
