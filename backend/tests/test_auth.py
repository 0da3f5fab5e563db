"""Login, token validation and logout."""

import pytest

from pharmatrack.models import User
from pharmatrack.services import auth_service
from pharmatrack.services.auth_service import PasswordValidationError


@pytest.fixture(scope='function')
def registered_clerk(db_session):
    return auth_service.create_user(
        name="Robin Clerk", email="Robin@Pharmatrack.test", password="Password123!", role="clerk",
    )


def test_password_strength_enforced(db_session):
    with pytest.raises(PasswordValidationError):
        auth_service.create_user(name="Weak", email="weak@pharmatrack.test", password="password")


def test_duplicate_email_rejected(db_session, registered_clerk):
    with pytest.raises(ValueError):
        auth_service.create_user(name="Dup", email="robin@pharmatrack.test", password="Password123!")


def test_unknown_role_rejected(db_session):
    with pytest.raises(ValueError):
        auth_service.create_user(name="X", email="x@pharmatrack.test", password="Password123!", role="manager")


def test_login_validate_logout(client, db_session, registered_clerk):
    response = client.post("/api/auth/login", json={
        "email": "robin@pharmatrack.test", "password": "Password123!",
    })
    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["role"] == "clerk"
    headers = {"Authorization": f"Bearer {body['token']}"}

    validated = client.post("/api/auth/validate", headers=headers)
    assert validated.status_code == 200
    assert validated.get_json()["user"]["email"] == "robin@pharmatrack.test"

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.post("/api/auth/validate", headers=headers).status_code == 401


def test_login_wrong_password(client, db_session, registered_clerk):
    response = client.post("/api/auth/login", json={
        "email": "robin@pharmatrack.test", "password": "Password124!",
    })
    assert response.status_code == 401


def test_login_missing_fields(client, db_session):
    assert client.post("/api/auth/login", json={"email": "a@b.c"}).status_code == 400


def test_inactive_user_cannot_login_or_use_token(client, db_session, registered_clerk):
    login = client.post("/api/auth/login", json={
        "email": "robin@pharmatrack.test", "password": "Password123!",
    }).get_json()
    headers = {"Authorization": f"Bearer {login['token']}"}

    user = db_session.get(User, registered_clerk.id)
    user.status = "inactive"
    db_session.commit()

    assert client.post("/api/auth/validate", headers=headers).status_code == 401
    assert client.post("/api/auth/login", json={
        "email": "robin@pharmatrack.test", "password": "Password123!",
    }).status_code == 401


def test_health(client, db_session):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"
