"""Email value object.

Provides validated email addresses for user identification. Addresses
are stored exactly as given: lookups are case-sensitive.
"""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from folio_identity.exceptions import InvalidEmailError


@dataclass(frozen=True)
class Email:
    """Value object representing a syntactically valid email address."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            msg = "Email cannot be empty"
            raise InvalidEmailError(msg)

        try:
            validate_email(self.value, check_deliverability=False)
        except EmailNotValidError as e:
            msg = f"Invalid email format: {self.value}"
            raise InvalidEmailError(msg) from e

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Email('{self.value}')"
