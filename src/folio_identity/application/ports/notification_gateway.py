"""Outbound notification port."""

from abc import ABC, abstractmethod


class NotificationGateway(ABC):
    """Delivers account e-mails.

    Implementations raise on delivery failure; callers decide whether the
    failure is fatal for the request.
    """

    @abstractmethod
    def send_verification_email(self, to_email: str, token: str) -> None:
        """Send the link that completes signup."""

    @abstractmethod
    def send_password_reset_email(self, to_email: str, token: str) -> None:
        """Send the link that opens the password reset form."""

    @abstractmethod
    def send_welcome_email(self, to_email: str) -> None:
        """Greet a newly activated account."""

    @abstractmethod
    def send_password_reset_confirmation_email(self, to_email: str) -> None:
        """Confirm that the password was changed."""
