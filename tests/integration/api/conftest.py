"""Pytest fixtures for API integration tests.

Each test gets a fresh in-memory SQLite database behind the real
application factory; the app's lifespan creates the schema. Outgoing
email is captured by a recording gateway instead of SMTP.
"""

from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from folio.presentation.api.app import API_V1_PREFIX, create_app
from folio_config.settings import Settings
from folio_identity import NotificationGateway
from tests.shared.fixtures.database import create_sqlite_engine
from tests.shared.fixtures.factories import TEST_BCRYPT_ROUNDS, TEST_JWT_SECRET

FRONTEND_URL = "https://folio.example.com"


@dataclass
class SentEmail:
    kind: str
    to: str
    token: str | None = None


@dataclass
class RecordingNotificationGateway(NotificationGateway):
    """Keeps every message in memory; ``fail`` makes every send raise."""

    sent: list[SentEmail] = field(default_factory=list)
    fail: bool = False

    def _record(self, kind: str, to: str, token: str | None = None) -> None:
        if self.fail:
            msg = "SMTP unavailable"
            raise ConnectionError(msg)
        self.sent.append(SentEmail(kind, to, token))

    def send_verification_email(self, to_email: str, token: str) -> None:
        self._record("verification", to_email, token)

    def send_password_reset_email(self, to_email: str, token: str) -> None:
        self._record("password_reset", to_email, token)

    def send_welcome_email(self, to_email: str) -> None:
        self._record("welcome", to_email)

    def send_password_reset_confirmation_email(self, to_email: str) -> None:
        self._record("password_reset_confirmation", to_email)

    def last(self, kind: str) -> SentEmail:
        return [email for email in self.sent if email.kind == kind][-1]


@pytest.fixture
def api_settings() -> Settings:
    """Settings for API tests (plain HTTP cookies, no background jobs)."""
    return Settings(
        jwt_secret_key=TEST_JWT_SECRET,
        postgres_password="unused",
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        api_cookie_secure=False,
        cleanup_enabled=False,
        frontend_base_url=FRONTEND_URL,
        backend_base_url="http://testserver",
        google_client_id="",
        google_client_secret=None,
        smtp_enabled=False,
    )


@pytest.fixture
def notifier() -> RecordingNotificationGateway:
    return RecordingNotificationGateway()


@pytest.fixture
def app(api_settings, notifier):
    return create_app(
        settings=api_settings,
        engine=create_sqlite_engine(),
        notification_gateway=notifier,
    )


@pytest.fixture
def test_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def api_v1_prefix() -> str:
    return API_V1_PREFIX


@pytest.fixture
def auth_url(api_v1_prefix) -> str:
    return f"{api_v1_prefix}/auth"


@pytest.fixture
def registered_user_data() -> dict:
    return {"email": "student@example.com", "password": "secure_password_123"}


@pytest.fixture
def signed_up_user(test_client, auth_url, notifier, registered_user_data) -> dict:
    """A user that signed up but has not verified yet."""
    response = test_client.post(f"{auth_url}/signup", json=registered_user_data)
    assert response.status_code == 201
    return {
        **registered_user_data,
        "verification_token": notifier.last("verification").token,
    }


@pytest.fixture
def verified_user(test_client, auth_url, signed_up_user) -> dict:
    response = test_client.get(
        f"{auth_url}/verify",
        params={"token": signed_up_user["verification_token"]},
        follow_redirects=False,
    )
    assert response.status_code == 302
    test_client.cookies.clear()
    return signed_up_user
