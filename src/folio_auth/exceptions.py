"""Authentication exceptions.

These exceptions are raised by the folio_auth package and should be
caught and handled by the application layer (AccountService) or the
API exception handlers.
"""


class AuthError(Exception):
    """Base exception for all authentication errors."""

    def __init__(self, message: str = "Authentication error"):
        self.message = message
        super().__init__(self.message)


class InvalidTokenError(AuthError):
    """Raised when a JWT token is invalid, expired, or malformed."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    """Raised when a JWT token is past its expiry."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class InvalidSignatureError(InvalidTokenError):
    """Raised when a JWT signature or signing algorithm does not check out."""

    def __init__(self, message: str = "Invalid token signature"):
        super().__init__(message)


class WeakPasswordError(AuthError):
    """Raised when a password cannot be hashed (empty or too long)."""

    def __init__(self, message: str = "Password does not meet requirements"):
        super().__init__(message)
