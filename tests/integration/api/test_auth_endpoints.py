"""Integration tests for the authentication endpoints."""

from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest

from folio_auth import JWTService
from folio_identity.domain.shared.time import utc_now
from folio_identity.exceptions import StorageError
from tests.integration.api.conftest import FRONTEND_URL

SERVICE_CLOCK = "folio_identity.application.services.account_service.utc_now"
JWT_COOKIE = "jwt-token"


def _set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")


def _jwt_cookie_header(response) -> str:
    return next(h for h in _set_cookie_headers(response) if h.startswith(JWT_COOKIE))


class TestSignup:
    def test_signup_success(self, test_client, auth_url, notifier):
        response = test_client.post(
            f"{auth_url}/signup",
            json={"email": "new@example.com", "password": "secure_password_123"},
        )

        assert response.status_code == 201
        assert "message" in response.json()
        sent = notifier.last("verification")
        assert sent.to == "new@example.com"
        assert len(sent.token) == 64
        assert sent.token not in response.text

    def test_signup_does_not_log_in(self, test_client, auth_url):
        response = test_client.post(
            f"{auth_url}/signup",
            json={"email": "new@example.com", "password": "secure_password_123"},
        )

        assert JWT_COOKIE not in response.cookies

    def test_signup_duplicate_email(self, test_client, auth_url, signed_up_user):
        response = test_client.post(
            f"{auth_url}/signup",
            json={"email": signed_up_user["email"], "password": "other_password_1"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "USER_ALREADY_EXISTS"

    def test_signup_invalid_email(self, test_client, auth_url):
        response = test_client.post(
            f"{auth_url}/signup",
            json={"email": "not-an-email", "password": "secure_password_123"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_EMAIL"

    def test_signup_short_password(self, test_client, auth_url):
        response = test_client.post(
            f"{auth_url}/signup",
            json={"email": "new@example.com", "password": "short"},
        )

        assert response.status_code == 422

    def test_signup_mail_failure_keeps_account(self, test_client, auth_url, notifier):
        notifier.fail = True
        data = {"email": "new@example.com", "password": "secure_password_123"}

        response = test_client.post(f"{auth_url}/signup", json=data)

        assert response.status_code == 502
        assert response.json()["code"] == "NOTIFICATION_FAILED"
        notifier.fail = False
        retry = test_client.post(f"{auth_url}/signup", json=data)
        assert retry.status_code == 409

    def test_storage_failure_is_503(self, test_client, auth_url):
        with patch(
            "folio_identity.infrastructure.persistence.sqlalchemy.repositories."
            "user_repository.UserRepositorySQLAlchemy.find_by_email",
            side_effect=StorageError(),
        ):
            response = test_client.post(
                f"{auth_url}/signup",
                json={"email": "new@example.com", "password": "secure_password_123"},
            )

        assert response.status_code == 503
        assert response.json()["code"] == "STORAGE_UNAVAILABLE"


class TestVerify:
    def test_verify_redirects_home_with_cookie(
        self, test_client, auth_url, notifier, signed_up_user
    ):
        response = test_client.get(
            f"{auth_url}/verify",
            params={"token": signed_up_user["verification_token"]},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == f"{FRONTEND_URL}/home"
        assert JWT_COOKIE in response.cookies
        assert notifier.last("welcome").to == signed_up_user["email"]

        me = test_client.get(f"{auth_url}/me")
        assert me.status_code == 200
        assert me.json()["is_verified"] is True

    def test_verify_twice_redirects_to_auth(self, test_client, auth_url, verified_user):
        response = test_client.get(
            f"{auth_url}/verify",
            params={"token": verified_user["verification_token"]},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == f"{FRONTEND_URL}/auth"
        assert JWT_COOKIE not in response.cookies

    def test_verify_unknown_token_redirects_to_auth(self, test_client, auth_url):
        response = test_client.get(
            f"{auth_url}/verify",
            params={"token": "0" * 64},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == f"{FRONTEND_URL}/auth"

    def test_verify_expired_token_redirects_to_auth(
        self, test_client, auth_url, signed_up_user, notifier
    ):
        with patch(SERVICE_CLOCK, return_value=utc_now() + timedelta(days=8)):
            response = test_client.get(
                f"{auth_url}/verify",
                params={"token": signed_up_user["verification_token"]},
                follow_redirects=False,
            )

        assert response.headers["location"] == f"{FRONTEND_URL}/auth"
        assert [email.kind for email in notifier.sent] == ["verification"]

    def test_verify_requires_token(self, test_client, auth_url):
        response = test_client.get(f"{auth_url}/verify", follow_redirects=False)

        assert response.status_code == 422


class TestLogin:
    def test_login_success(self, test_client, auth_url, verified_user):
        response = test_client.post(
            f"{auth_url}/login",
            json={
                "email": verified_user["email"],
                "password": verified_user["password"],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 3600
        cookie = _jwt_cookie_header(response)
        assert "HttpOnly" in cookie
        assert "Max-Age=3600" in cookie
        assert "Path=/" in cookie

    def test_login_remember_me(self, test_client, auth_url, verified_user):
        response = test_client.post(
            f"{auth_url}/login",
            json={
                "email": verified_user["email"],
                "password": verified_user["password"],
                "remember_me": True,
            },
        )

        assert response.json()["expires_in"] == 14 * 24 * 3600
        assert f"Max-Age={14 * 24 * 3600}" in _jwt_cookie_header(response)

    def test_unverified_user_can_log_in(self, test_client, auth_url, signed_up_user):
        response = test_client.post(
            f"{auth_url}/login",
            json={
                "email": signed_up_user["email"],
                "password": signed_up_user["password"],
            },
        )

        assert response.status_code == 200

    def test_bearer_token_authenticates(self, test_client, auth_url, verified_user):
        login = test_client.post(
            f"{auth_url}/login",
            json={
                "email": verified_user["email"],
                "password": verified_user["password"],
            },
        )
        token = login.json()["access_token"]
        test_client.cookies.clear()

        me = test_client.get(
            f"{auth_url}/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert me.status_code == 200
        assert me.json()["email"] == verified_user["email"]

    def test_failures_are_indistinguishable(self, test_client, auth_url, verified_user):
        wrong_password = test_client.post(
            f"{auth_url}/login",
            json={"email": verified_user["email"], "password": "wrong_password"},
        )
        unknown_email = test_client.post(
            f"{auth_url}/login",
            json={"email": "nobody@example.com", "password": "wrong_password"},
        )

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["code"] == "INVALID_CREDENTIALS"


class TestLogoutAndMe:
    def test_logout_clears_cookie(self, test_client, auth_url, verified_user):
        test_client.post(
            f"{auth_url}/login",
            json={
                "email": verified_user["email"],
                "password": verified_user["password"],
            },
        )

        response = test_client.post(f"{auth_url}/logout")

        assert response.status_code == 204
        cookie = _jwt_cookie_header(response)
        assert "Max-Age=0" in cookie
        assert test_client.get(f"{auth_url}/me").status_code == 401

    def test_logout_without_session(self, test_client, auth_url):
        assert test_client.post(f"{auth_url}/logout").status_code == 204

    def test_me_requires_authentication(self, test_client, auth_url):
        response = test_client.get(f"{auth_url}/me")

        assert response.status_code == 401

    def test_me_rejects_garbage_token(self, test_client, auth_url):
        response = test_client.get(
            f"{auth_url}/me",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    def test_me_rejects_foreign_signature(self, test_client, auth_url, verified_user):
        forged = JWTService(secret_key="some-other-secret").create_token(
            user_id=uuid4(),
            email=verified_user["email"],
        )

        response = test_client.get(
            f"{auth_url}/me",
            headers={"Authorization": f"Bearer {forged.token}"},
        )

        assert response.status_code == 401


class TestPasswordReset:
    def _request_reset(self, test_client, auth_url, notifier, email) -> str:
        response = test_client.post(
            f"{auth_url}/password-reset/request",
            json={"email": email},
        )
        assert response.status_code == 202
        return notifier.last("password_reset").token

    def test_request_sends_link(self, test_client, auth_url, notifier, verified_user):
        response = test_client.post(
            f"{auth_url}/password-reset/request",
            json={"email": verified_user["email"]},
        )

        assert response.status_code == 202
        sent = notifier.last("password_reset")
        assert sent.to == verified_user["email"]
        assert sent.token not in response.text

    def test_request_unknown_email(self, test_client, auth_url):
        response = test_client.post(
            f"{auth_url}/password-reset/request",
            json={"email": "nobody@example.com"},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_validate_token(self, test_client, auth_url, notifier, verified_user):
        token = self._request_reset(
            test_client, auth_url, notifier, verified_user["email"]
        )

        response = test_client.post(
            f"{auth_url}/password-reset/validate",
            json={"token": token},
        )

        assert response.status_code == 200
        assert response.json() == {"valid": True}

    def test_validate_unknown_token(self, test_client, auth_url):
        response = test_client.post(
            f"{auth_url}/password-reset/validate",
            json={"token": "0" * 64},
        )

        assert response.status_code == 404

    def test_validate_expired_token(
        self, test_client, auth_url, notifier, verified_user
    ):
        token = self._request_reset(
            test_client, auth_url, notifier, verified_user["email"]
        )

        with patch(SERVICE_CLOCK, return_value=utc_now() + timedelta(hours=2)):
            response = test_client.post(
                f"{auth_url}/password-reset/validate",
                json={"token": token},
            )

        assert response.status_code == 401
        assert response.json()["code"] == "RESET_TOKEN_EXPIRED"

    def test_complete_reset(self, test_client, auth_url, notifier, verified_user):
        token = self._request_reset(
            test_client, auth_url, notifier, verified_user["email"]
        )

        response = test_client.post(
            f"{auth_url}/password-reset/complete",
            json={"token": token, "new_password": "brand_new_password"},
        )

        assert response.status_code == 200
        assert response.json()["expires_in"] == 3600
        assert JWT_COOKIE in response.cookies
        assert notifier.last("password_reset_confirmation").to == verified_user["email"]

        old = test_client.post(
            f"{auth_url}/login",
            json={
                "email": verified_user["email"],
                "password": verified_user["password"],
            },
        )
        new = test_client.post(
            f"{auth_url}/login",
            json={"email": verified_user["email"], "password": "brand_new_password"},
        )
        assert old.status_code == 401
        assert new.status_code == 200

    def test_token_cannot_be_reused(
        self, test_client, auth_url, notifier, verified_user
    ):
        token = self._request_reset(
            test_client, auth_url, notifier, verified_user["email"]
        )
        payload = {"token": token, "new_password": "brand_new_password"}
        test_client.post(f"{auth_url}/password-reset/complete", json=payload)

        response = test_client.post(f"{auth_url}/password-reset/complete", json=payload)

        assert response.status_code == 404

    def test_complete_rejects_short_password(
        self, test_client, auth_url, notifier, verified_user
    ):
        token = self._request_reset(
            test_client, auth_url, notifier, verified_user["email"]
        )

        response = test_client.post(
            f"{auth_url}/password-reset/complete",
            json={"token": token, "new_password": "abc"},
        )

        assert response.status_code == 422


class TestHealth:
    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


@pytest.mark.parametrize("path", ["/docs", "/openapi.json"])
def test_docs_hidden_without_debug(test_client, path):
    assert test_client.get(path).status_code == 404
