from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import validation_exception_handler
from app.models.user import User
from app.routers.customers import router as customers_router
from app.routers.users import router as users_router
from app.services.auth import create_access_token
from tests.fixtures_data import ADMIN_USER, CUSTOMER_PAYLOAD, EMPLOYEE_USER


def _build_client():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = testing_session_local()

    admin = User(password_hash="hashed", **ADMIN_USER)
    employee = User(password_hash="hashed", **EMPLOYEE_USER)
    db.add_all([admin, employee])
    db.commit()

    app = FastAPI()
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(users_router)
    app.include_router(customers_router)
    app.dependency_overrides[get_db] = lambda: db

    return TestClient(app), db, admin, employee


def _auth_headers(user: User) -> dict:
    token = create_access_token(user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def test_admin_lists_users_without_password_hashes():
    client, _, admin, _ = _build_client()

    response = client.get("/users", headers=_auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert {user["email"] for user in body} == {ADMIN_USER["email"], EMPLOYEE_USER["email"]}
    assert all("password_hash" not in user for user in body)


def test_employee_cannot_list_or_read_users():
    client, _, admin, employee = _build_client()

    assert client.get("/users", headers=_auth_headers(employee)).status_code == 403
    assert client.get(f"/users/{admin.id}", headers=_auth_headers(employee)).status_code == 403


def test_get_user_by_id():
    client, _, admin, employee = _build_client()

    response = client.get(f"/users/{employee.id}", headers=_auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["role"] == "EMPLOYEE"


def test_get_missing_user_is_not_found():
    client, _, admin, _ = _build_client()

    response = client.get("/users/missing", headers=_auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["detail"] == "User with ID missing not found"


def test_update_role_rejects_unknown_role():
    client, _, admin, employee = _build_client()

    response = client.patch(f"/users/{employee.id}", json={"role": "OWNER"}, headers=_auth_headers(admin))

    assert response.status_code == 400


def test_promoted_user_gains_admin_access_on_next_request():
    client, _, admin, employee = _build_client()
    employee_headers = _auth_headers(employee)

    assert client.post("/customers", json=CUSTOMER_PAYLOAD, headers=employee_headers).status_code == 403

    response = client.patch(f"/users/{employee.id}", json={"role": "ADMIN"}, headers=_auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["message"] == "User role updated successfully"
    assert response.json()["user"]["role"] == "ADMIN"
    # the token still says EMPLOYEE; the stored role wins
    assert client.post("/customers", json=CUSTOMER_PAYLOAD, headers=employee_headers).status_code == 201


def test_demoted_admin_loses_access_on_next_request():
    client, _, admin, employee = _build_client()
    admin_headers = _auth_headers(admin)

    client.patch(f"/users/{admin.id}", json={"role": "EMPLOYEE"}, headers=admin_headers)

    assert client.get("/users", headers=admin_headers).status_code == 403
