"""JWT token service.

Provides JWT token creation and verification for authentication.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from folio_auth.exceptions import (
    InvalidSignatureError,
    InvalidTokenError,
    TokenExpiredError,
)
from folio_auth.schemas import IssuedToken, TokenPayload


class JWTService:
    """Service for JWT token creation and verification.

    Issues a single kind of bearer token whose lifetime depends on
    whether the user asked to be remembered.

    Examples
    --------
    >>> service = JWTService(secret_key="your-secret-key")
    >>> issued = service.create_token(user_id, "user@example.com")
    >>> payload = service.verify_token(issued.token)
    >>> print(payload.user_id)
    """

    DEFAULT_ACCESS_EXPIRE_HOURS = 1
    DEFAULT_REMEMBER_ME_EXPIRE_DAYS = 14
    ALGORITHM = "HS256"
    REQUIRED_CLAIMS = ("sub", "email", "exp")

    def __init__(
        self,
        secret_key: str,
        access_token_expire_hours: int = DEFAULT_ACCESS_EXPIRE_HOURS,
        remember_me_expire_days: int = DEFAULT_REMEMBER_ME_EXPIRE_DAYS,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        secret_key
            Secret key for signing tokens. Must be kept secure.
        access_token_expire_hours
            Hours until a regular token expires (default 1)
        remember_me_expire_days
            Days until a "remember me" token expires (default 14)
        """
        if not secret_key:
            msg = "JWT secret key cannot be empty"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._access_expire = timedelta(hours=access_token_expire_hours)
        self._remember_me_expire = timedelta(days=remember_me_expire_days)

    def lifetime(self, remember_me: bool = False) -> timedelta:
        """Return the token lifetime for the given remember-me choice."""
        return self._remember_me_expire if remember_me else self._access_expire

    def create_token(
        self,
        user_id: UUID,
        email: str,
        remember_me: bool = False,
    ) -> IssuedToken:
        """Create a signed bearer token.

        Parameters
        ----------
        user_id
            The user's unique identifier
        email
            The user's email address
        remember_me
            Issue the long-lived token instead of the short one

        Returns
        -------
        IssuedToken with the encoded JWT and its lifetime
        """
        lifetime = self.lifetime(remember_me)
        now = datetime.now(tz=timezone.utc)

        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + lifetime,
        }

        token = jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)
        return IssuedToken(token=token, lifetime=lifetime)

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a JWT token.

        The header algorithm is checked before the signature so that
        tokens signed with any other algorithm (including ``none``) are
        rejected outright.

        Parameters
        ----------
        token
            The JWT token string to verify

        Returns
        -------
        TokenPayload containing the decoded data

        Raises
        ------
        TokenExpiredError
            If the token is past its ``exp`` claim
        InvalidSignatureError
            If the algorithm is not HS256 or the signature does not match
        InvalidTokenError
            If the token is otherwise malformed
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if header.get("alg") != self.ALGORITHM:
            msg = f"Unexpected signing method: {header.get('alg')}"
            raise InvalidSignatureError(msg)

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": list(self.REQUIRED_CLAIMS)},
            )

            user_id = UUID(payload["sub"])
            email = payload["email"]
            exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)

            return TokenPayload(user_id=user_id, email=email, exp=exp)

        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError() from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e
