"""Identity exceptions and error codes.

All account lifecycle failures inherit from IdentityError so the
presentation layer can translate them centrally. Each concrete error
belongs to exactly one category (InvalidInput, Conflict, NotFound,
Expired, AlreadyDone, Unauthorized, Dependency), and the category decides
the HTTP status.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    # Invalid input (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_PASSWORD = "INVALID_PASSWORD"

    # Conflict (409)
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"

    # Not found (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Expired (401)
    VERIFICATION_TOKEN_EXPIRED = "VERIFICATION_TOKEN_EXPIRED"
    RESET_TOKEN_EXPIRED = "RESET_TOKEN_EXPIRED"

    # Already done (409)
    USER_ALREADY_VERIFIED = "USER_ALREADY_VERIFIED"

    # Unauthorized (401)
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    NO_PASSWORD_SET = "NO_PASSWORD_SET"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Dependency (502/503)
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IdentityError(Exception):
    """Base exception for all identity errors.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context (logged but not exposed to users)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


# Categories


class InvalidInputError(IdentityError):
    """Raised when caller-supplied input is unusable."""


class ConflictError(IdentityError):
    """Raised when an operation collides with existing state."""


class NotFoundError(IdentityError):
    """Raised when a referenced record does not exist."""


class ExpiredError(IdentityError):
    """Raised when a time-limited token is past its expiry."""


class AlreadyDoneError(IdentityError):
    """Raised when a one-shot transition has already happened."""


class UnauthorizedError(IdentityError):
    """Raised when credentials do not authenticate the caller."""


class DependencyError(IdentityError):
    """Raised when a backing service (storage, mail) fails."""


# Concrete errors


class InvalidEmailError(InvalidInputError):
    def __init__(self, message: str = "Invalid email address") -> None:
        super().__init__(message, ErrorCode.INVALID_EMAIL)


class InvalidPasswordError(InvalidInputError):
    def __init__(self, message: str = "Invalid password") -> None:
        super().__init__(message, ErrorCode.INVALID_PASSWORD)


class UserAlreadyExistsError(ConflictError):
    """Email already registered to a live account."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(
            "A user with this email already exists",
            ErrorCode.USER_ALREADY_EXISTS,
            {"email": email},
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found", **details: Any) -> None:
        super().__init__(message, ErrorCode.USER_NOT_FOUND, details)


class VerificationTokenExpiredError(ExpiredError):
    def __init__(self, message: str = "Verification token has expired") -> None:
        super().__init__(message, ErrorCode.VERIFICATION_TOKEN_EXPIRED)


class ResetTokenExpiredError(ExpiredError):
    def __init__(self, message: str = "Password reset token has expired") -> None:
        super().__init__(message, ErrorCode.RESET_TOKEN_EXPIRED)


class UserAlreadyVerifiedError(AlreadyDoneError):
    def __init__(self, message: str = "User is already verified") -> None:
        super().__init__(message, ErrorCode.USER_ALREADY_VERIFIED)


class InvalidCredentialsError(UnauthorizedError):
    """Raised when the password does not match the stored hash."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message, ErrorCode.INVALID_CREDENTIALS)


class NoPasswordSetError(UnauthorizedError):
    """Raised on password login for an account created through OAuth."""

    def __init__(self, message: str = "No password set for this account") -> None:
        super().__init__(message, ErrorCode.NO_PASSWORD_SET)


class StorageError(DependencyError):
    def __init__(
        self,
        message: str = "Storage is unavailable",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.STORAGE_UNAVAILABLE, details)


class NotificationDeliveryError(DependencyError):
    def __init__(
        self,
        message: str = "Failed to deliver notification",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.NOTIFICATION_FAILED, details)
