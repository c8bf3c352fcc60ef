import pytest
from fastapi.testclient import TestClient

from app.api import auth
from app.api.auth import LoginResponse, get_cognito_client
from app.main import app
from app.services.errors import UnauthorizedError


class DummyCognitoClient:
    def __init__(self):
        self.signed_out: list[str] = []

    async def sign_in_with_email(self, email: str, password: str) -> LoginResponse:
        if password != "correct":
            raise UnauthorizedError("Invalid email or password")
        return LoginResponse(id_token="id", access_token="access", expires_in=3600)

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


@pytest.fixture
def cognito(monkeypatch):
    monkeypatch.setattr(auth.settings, "admin_token", "s3cret-admin")
    monkeypatch.setattr(auth.settings, "cognito_user_pool_id", "")
    monkeypatch.setattr(auth.settings, "cognito_client_id", "")
    client = DummyCognitoClient()
    app.dependency_overrides[get_cognito_client] = lambda: client
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def client(cognito):
    return TestClient(app)


def test_admin_token_disabled_when_unset(monkeypatch):
    monkeypatch.setattr(auth.settings, "admin_token", "")
    assert auth.validate_admin_token("") is False
    assert auth.validate_admin_token("anything") is False


def test_admin_token_compare(cognito):
    assert auth.validate_admin_token("s3cret-admin") is True
    assert auth.validate_admin_token("wrong") is False


def test_me_with_admin_token(client):
    response = client.get("/api/me", headers={"Authorization": "Bearer s3cret-admin"})

    assert response.status_code == 200
    assert response.json() == {
        "sub": auth.ADMIN_USER_SUB,
        "email": auth.ADMIN_USER_EMAIL,
        "name": auth.ADMIN_USER_NAME,
    }


def test_me_without_credentials(client):
    response = client.get("/api/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_me_with_unverifiable_token(client):
    response = client.get("/api/me", headers={"Authorization": "Bearer some.jwt.token"})
    assert response.status_code == 401


def test_login(client):
    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "correct"})

    assert response.status_code == 200
    assert response.json()["access_token"] == "access"
    assert response.json()["token_type"] == "Bearer"


def test_login_rejected(client):
    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_logout_skips_provider_for_admin_token(client, cognito):
    response = client.post("/api/auth/logout", headers={"Authorization": "Bearer s3cret-admin"})

    assert response.json() == {"success": True}
    assert cognito.signed_out == []


def test_logout_signs_out_provider_token(client, cognito):
    client.post("/api/auth/logout", headers={"Authorization": "Bearer provider-token"})
    assert cognito.signed_out == ["provider-token"]


@pytest.mark.asyncio
async def test_optional_user_returns_none_for_bad_token(cognito):
    from fastapi.security import HTTPAuthorizationCredentials

    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="bogus")
    assert await auth.get_optional_user(credentials) is None
    assert (await auth.get_optional_user(
        HTTPAuthorizationCredentials(scheme="Bearer", credentials="s3cret-admin")
    )).sub == auth.ADMIN_USER_SUB
