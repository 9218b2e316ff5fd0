from datetime import datetime, timedelta, timezone

import jwt
import pytest

from auth import AdminIdentity, create_access_token, decode_access_token, hash_password
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD

PROTECTED_ROUTES = [
    ("get", "/api/inquiries"),
    ("patch", "/api/inquiries/1"),
    ("delete", "/api/inquiries/1"),
    ("post", "/api/projects"),
    ("put", "/api/projects/1"),
    ("delete", "/api/projects/1"),
]


def test_login_returns_token_and_user(client, settings):
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {"id": "1", "email": ADMIN_EMAIL, "role": "admin"}

    claims = jwt.decode(body["token"], settings.jwt_secret, algorithms=["HS256"])
    assert claims["role"] == "admin"
    assert claims["email"] == ADMIN_EMAIL
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


def test_login_accepts_hashed_password(app, client, settings):
    app.state.settings = settings.model_copy(
        update={"admin_password": None, "admin_password_hash": hash_password("hashed-only")}
    )
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "hashed-only"}
    )
    assert response.status_code == 200


def test_login_with_non_ascii_wrong_password_is_401(client):
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "pässwörd"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_login_with_non_ascii_configured_password(app, client, settings):
    app.state.settings = settings.model_copy(update={"admin_password": "contraseña"})
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "contraseña"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["email"] == ADMIN_EMAIL


def test_login_with_non_ascii_hashed_password(app, client, settings):
    app.state.settings = settings.model_copy(
        update={"admin_password": None, "admin_password_hash": hash_password("日本語")}
    )
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "日本語"})
    assert response.status_code == 200


@pytest.mark.parametrize(
    "payload",
    [{}, {"email": ADMIN_EMAIL}, {"password": ADMIN_PASSWORD}, {"email": "", "password": ""}],
)
def test_login_requires_both_fields(client, payload):
    response = client.post("/api/auth/login", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Email and password are required"


@pytest.mark.parametrize(
    "email,password",
    [("someone@example.com", ADMIN_PASSWORD), (ADMIN_EMAIL, "wrong")],
)
def test_login_rejects_bad_credentials(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_protected_routes_require_token(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication token required"


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_protected_routes_reject_expired_token(client, settings, method, path):
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    expired = create_access_token(
        settings, AdminIdentity("1", ADMIN_EMAIL, "admin"), now=issued
    )
    response = getattr(client, method)(path, headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Invalid or expired token"


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test_protected_routes_reject_tampered_token(client, token, method, path):
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    response = getattr(client, method)(
        path, headers={"Authorization": f"Bearer {tampered}"}
    )
    assert response.status_code == 403


def test_token_signed_with_other_secret_is_rejected(client, settings):
    forged = create_access_token(
        settings.model_copy(update={"jwt_secret": "other"}),
        AdminIdentity("1", ADMIN_EMAIL, "admin"),
    )
    response = client.get("/api/inquiries", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 403


def test_non_admin_role_is_forbidden(client, settings):
    token = create_access_token(settings, AdminIdentity("2", "viewer@example.com", "viewer"))
    response = client.get("/api/inquiries", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


def test_valid_token_reaches_protected_route(client, auth_headers):
    response = client.get("/api/inquiries", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_decode_round_trips_identity(settings):
    identity = AdminIdentity("1", ADMIN_EMAIL, "admin")
    assert decode_access_token(settings, create_access_token(settings, identity)) == identity
