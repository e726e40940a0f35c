"""Unit tests for the User aggregate."""

from datetime import timedelta

import pytest

from folio_identity import ExternalIdentityProfile, User, UserProfile
from folio_identity.domain.shared.time import utc_now
from folio_identity.exceptions import (
    UserAlreadyVerifiedError,
    VerificationTokenExpiredError,
)

EMAIL = "student@example.com"


def _registered(expires_in: timedelta = timedelta(days=7)) -> User:
    return User.register(
        email=EMAIL,
        password_hash="$2b$04$hash",
        verification_token_hash="digest-1",
        verification_expires_at=utc_now() + expires_in,
    )


class TestRegister:
    def test_new_user_is_unverified_with_token(self):
        user = _registered()

        assert not user.is_verified
        assert user.verification_token_hash == "digest-1"
        assert user.verification_expires_at is not None
        assert user.has_password
        assert not user.is_deleted

    def test_ids_are_unique(self):
        assert _registered().id != _registered().id


class TestVerify:
    def test_verify_clears_token_and_expiry(self):
        user = _registered()

        user.verify(utc_now())

        assert user.is_verified
        assert user.verification_token_hash is None
        assert user.verification_expires_at is None
        assert user.consumed_verification_token_hash == "digest-1"

    def test_verify_after_expiry_raises(self):
        user = _registered(expires_in=timedelta(seconds=-1))

        with pytest.raises(VerificationTokenExpiredError):
            user.verify(utc_now())

        assert not user.is_verified

    def test_verify_twice_raises_already_verified(self):
        user = _registered()
        user.verify(utc_now())

        with pytest.raises(UserAlreadyVerifiedError):
            user.verify(utc_now())

    def test_expiry_boundary_is_exclusive(self):
        user = _registered()
        expires_at = user.verification_expires_at

        assert not user.is_verification_expired(expires_at)
        assert user.is_verification_expired(expires_at + timedelta(microseconds=1))


class TestPasswordReset:
    def test_request_installs_token(self):
        user = _registered()
        expires_at = utc_now() + timedelta(hours=1)

        user.request_password_reset("reset-digest", expires_at)

        assert user.password_reset_token_hash == "reset-digest"
        assert user.password_reset_expires_at == expires_at

    def test_new_request_replaces_previous(self):
        user = _registered()
        user.request_password_reset("first", utc_now() + timedelta(hours=1))

        user.request_password_reset("second", utc_now() + timedelta(hours=1))

        assert user.password_reset_token_hash == "second"

    def test_change_password_consumes_token(self):
        user = _registered()
        user.request_password_reset("reset-digest", utc_now() + timedelta(hours=1))

        user.change_password("$2b$04$new")

        assert user.password_hash == "$2b$04$new"
        assert user.password_reset_token_hash is None
        assert user.password_reset_expires_at is None

    def test_reset_expired(self):
        user = _registered()
        user.request_password_reset("d", utc_now() - timedelta(seconds=1))

        assert user.is_password_reset_expired(utc_now())


class TestCreateFromExternal:
    def test_external_user_is_verified_without_password(self):
        user = User.create_from_external(
            ExternalIdentityProfile(
                email=EMAIL,
                given_name="Hanako",
                family_name="Yamada",
            )
        )

        assert user.is_verified
        assert not user.has_password
        assert user.verification_token_hash is None
        assert user.profile.first_name == "Hanako"
        assert user.profile.last_name == "Yamada"


class TestReconstitute:
    def test_naive_datetimes_become_utc(self):
        naive = utc_now().replace(tzinfo=None)

        user = User.reconstitute(
            id=_registered().id,
            email=EMAIL,
            password_hash=None,
            is_verified=True,
            verification_token_hash=None,
            verification_expires_at=None,
            consumed_verification_token_hash=None,
            password_reset_token_hash=None,
            password_reset_expires_at=naive,
            profile=UserProfile(),
            created_at=naive,
            updated_at=naive,
        )

        assert user.created_at.tzinfo is not None
        assert user.password_reset_expires_at.tzinfo is not None

    def test_equality_by_id(self):
        user = _registered()
        same = User(id=user.id, email="other@example.com")

        assert user == same
        assert hash(user) == hash(same)


class TestSoftDelete:
    def test_soft_delete_marks_deleted(self):
        user = _registered()
        now = utc_now()

        user.soft_delete(now)

        assert user.is_deleted
        assert user.deleted_at == now
