"""Opaque one-time tokens for verification and password reset links."""

import hashlib
import secrets


class OpaqueTokenService:
    """Generates random link tokens and the digests that get persisted.

    Only the SHA-256 digest of a token is ever stored; the raw value goes
    out by e-mail and is hashed again on the way back in.
    """

    TOKEN_BYTES = 32

    def __init__(self, token_bytes: int = TOKEN_BYTES):
        self._token_bytes = token_bytes

    def generate(self) -> str:
        """Return a new hex-encoded random token."""
        return secrets.token_hex(self._token_bytes)

    @staticmethod
    def digest(token: str) -> str:
        """Return the SHA-256 hex digest of a raw token."""
        return hashlib.sha256(token.encode()).hexdigest()
