import os

# Must be set before brokerlink reads its cached settings
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from brokerlink.brokers.upstox import UpstoxOAuthClient
from brokerlink.core.config import Settings
from brokerlink.core.exceptions import UpstreamError
from brokerlink.core.security import generate_key
from brokerlink.main import create_app


class FakeUpstoxClient(UpstoxOAuthClient):
    """Records token exchanges instead of calling Upstox"""

    def __init__(self, settings: Settings):
        super().__init__(
            auth_dialog_url=settings.UPSTOX_AUTH_DIALOG_URL,
            token_url=settings.UPSTOX_TOKEN_URL,
        )
        self.calls = []
        self.tokens = {
            "access_token": "upstox-access-token",
            "refresh_token": None,
            "extended_token": "upstox-extended-token",
        }
        self.error = None

    def exchange_code(self, code, client_id, client_secret, redirect_uri):
        self.calls.append({
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
        })
        if self.error:
            raise self.error
        return dict(self.tokens)

    def reject(self):
        self.error = UpstreamError("Failed to exchange authorization code for token")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret-key",
        FERNET_KEY=generate_key(),
        LOG_FILE="",
    )


@pytest.fixture
def upstox(settings):
    return FakeUpstoxClient(settings)


@pytest.fixture
def client(settings, upstox):
    app = create_app(settings, upstox_client=upstox)
    with TestClient(app) as test_client:
        yield test_client


def signup_and_login(client, email="trader@brokerlink.io", password="password1"):
    resp = client.post("/auth/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    token = client.post("/auth/login", json={"email": email, "password": password}).json()["token"]
    return resp.json()["userId"], {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    _, headers = signup_and_login(client)
    return headers


UPSTOX_CREDENTIALS = {
    "apiKey": "my-upstox-key",
    "apiSecret": "my-upstox-secret",
    "redirectUri": "https://app.example.com/upstox/callback",
}
