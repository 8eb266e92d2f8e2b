from datetime import datetime, timedelta, timezone
from jose import jwt

from marketplace_backend.interface.tokens import verify_access_token
from marketplace_backend.permissions.auth import AuthenticationResult, PrincipalBuilder
from marketplace_backend.settings import settings
from marketplace_backend.tests.utils import auth_headers


def test_register_and_login(client):
    response = client.post("/cadastro", json={
        "name": "Maria",
        "email": "Maria@Example.com",
        "password": "secret123",
        "role": "VENDEDOR",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "VENDEDOR"
    assert body["user"]["email"] == "maria@example.com"
    assert verify_access_token(body["token"]).user_id == body["user"]["id"]

    response = client.post("/login", json={"email": "maria@example.com", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == body["user"]["id"]


def test_register_defaults_to_buyer(client):
    response = client.post("/cadastro", json={"name": "João", "email": "joao@example.com", "password": "secret123"})
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "USER"


def test_register_duplicate_email(client, buyer):
    response = client.post("/cadastro", json={"name": "Again", "email": buyer.email, "password": "secret123"})
    assert response.status_code == 400


def test_register_validation(client):
    assert client.post("/cadastro", json={"name": "X", "email": "not-an-email", "password": "secret123"}).status_code == 422
    assert client.post("/cadastro", json={"name": "X", "email": "x@example.com", "password": "123"}).status_code == 422
    assert client.post("/cadastro", json={"name": "X", "email": "x@example.com", "password": "secret123", "role": "ADMIN"}).status_code == 422


def test_login_failures(client, buyer):
    assert client.post("/login", json={"email": "nobody@example.com", "password": "secret123"}).status_code == 404
    assert client.post("/login", json={"email": buyer.email, "password": "wrong-password"}).status_code == 401


def test_me(client, buyer):
    response = client.get("/me", headers=auth_headers(buyer))
    assert response.status_code == 200
    assert response.json()["id"] == buyer.id
    assert response.json()["accessible_course_ids"] == []


def test_expired_token(client, buyer):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": buyer.id, "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"


def test_token_of_deleted_user(client):
    token = jwt.encode(
        {"sub": "ghost", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )
    assert client.get("/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_principal_carries_only_identity_and_role(buyer):
    principal = PrincipalBuilder.build(AuthenticationResult(buyer.id, buyer.role))
    assert principal.model_dump() == {"user_id": buyer.id, "role": "USER"}
