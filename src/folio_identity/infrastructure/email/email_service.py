"""SMTP delivery of account notification emails.

Every message carries a plain-text and an HTML part. With SMTP disabled the
service logs and skips delivery.
"""

import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from folio_config.settings import Settings
from folio_identity.application.ports import NotificationGateway

logger = logging.getLogger(__name__)

_HTML_WRAPPER = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
</head>
<body style="font-family: Arial, sans-serif; background-color: #f9fafb; margin: 0; padding: 20px;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; padding: 40px; color: #333333;">
        <h2 style="color: #F15A24; margin-top: 0;">{heading}</h2>
        {content}
        <div style="margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb;">
            <p style="color: #9ca3af; font-size: 13px; margin: 0;">Folio - the portfolio platform for engineering students</p>
        </div>
    </div>
</body>
</html>
"""

_BUTTON = (
    '<p style="margin: 30px 0; text-align: center;">'
    '<a href="{link}" style="display: inline-block; padding: 12px 24px; '
    "background-color: #F15A24; color: #ffffff !important; text-decoration: none; "
    'border-radius: 5px; font-weight: 600;">{label}</a></p>'
    '<p style="color: #6b7280; font-size: 14px;">Or copy and paste this link into your browser:</p>'  # noqa: E501
    '<p style="word-break: break-all; color: #F15A24; font-size: 14px;">{link}</p>'
)

VERIFICATION_SUBJECT = "Folio - Confirm your registration"

VERIFICATION_TEXT = """Hello,

Thank you for signing up for Folio.

Open the link below to complete your registration (valid for 7 days):
{link}

If you didn't sign up, you can safely ignore this email.

-- Folio
"""

PASSWORD_RESET_SUBJECT = "Folio - Password reset request"

PASSWORD_RESET_TEXT = """Hello,

You requested a password reset for your Folio account.

Open the link below to reset your password (valid for 1 hour):
{link}

If you didn't request this, you can safely ignore this email.

-- Folio
"""

WELCOME_SUBJECT = "Welcome to Folio!"

WELCOME_TEXT = """Hello,

Thank you for joining Folio, the platform for every student on the way to
becoming an engineer.

Browse portfolios from students at other universities, and publish your
own profile and work so that companies can find you.

-- Folio
"""

PASSWORD_RESET_CONFIRMATION_SUBJECT = "Folio - Your password was changed"

PASSWORD_RESET_CONFIRMATION_TEXT = """Hello,

The password for your Folio account ({email}) has just been changed.

For security reasons the new password is not included in this message.
If you did not make this change, reset your password immediately.

-- Folio
"""


class EmailService(NotificationGateway):
    """SMTP notification gateway.

    With ``smtp_enabled`` off, messages are logged and dropped so local
    development works without a mail server.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._frontend_base_url = settings.frontend_base_url.rstrip("/")

    def verification_link(self, token: str) -> str:
        return f"{self._frontend_base_url}/verifyStart?token={token}"

    def password_reset_link(self, token: str) -> str:
        return f"{self._frontend_base_url}/PasswordReset/{token}"

    def send_verification_email(self, to_email: str, token: str) -> None:
        link = self.verification_link(token)
        self._deliver(
            to_email=to_email,
            subject=VERIFICATION_SUBJECT,
            text_body=VERIFICATION_TEXT.format(link=link),
            html_body=_HTML_WRAPPER.format(
                heading="Confirm your registration",
                content=(
                    "<p>Thank you for signing up for Folio.</p>"
                    "<p>Click the button below to complete your registration. "
                    "This link is valid for <strong>7 days</strong>.</p>"
                    + _BUTTON.format(
                        link=html.escape(link), label="Complete registration"
                    )
                ),
            ),
        )

    def send_password_reset_email(self, to_email: str, token: str) -> None:
        link = self.password_reset_link(token)
        self._deliver(
            to_email=to_email,
            subject=PASSWORD_RESET_SUBJECT,
            text_body=PASSWORD_RESET_TEXT.format(link=link),
            html_body=_HTML_WRAPPER.format(
                heading="Password reset",
                content=(
                    "<p>You requested a password reset for your Folio account.</p>"
                    "<p>This link is valid for 1 hour.</p>"
                    + _BUTTON.format(link=html.escape(link), label="Reset password")
                ),
            ),
        )

    def send_welcome_email(self, to_email: str) -> None:
        self._deliver(
            to_email=to_email,
            subject=WELCOME_SUBJECT,
            text_body=WELCOME_TEXT,
            html_body=_HTML_WRAPPER.format(
                heading="Welcome to Folio!",
                content="".join(
                    f"<p>{paragraph}</p>"
                    for paragraph in WELCOME_TEXT.split("\n\n")[1:-1]
                ),
            ),
        )

    def send_password_reset_confirmation_email(self, to_email: str) -> None:
        self._deliver(
            to_email=to_email,
            subject=PASSWORD_RESET_CONFIRMATION_SUBJECT,
            text_body=PASSWORD_RESET_CONFIRMATION_TEXT.format(email=to_email),
            html_body=_HTML_WRAPPER.format(
                heading="Your password was changed",
                content=(
                    f"<p>The password for {html.escape(to_email)} "
                    "has just been changed.</p>"
                    "<p>For security reasons the new password is not included "
                    "in this message. If you did not make this change, reset "
                    "your password immediately.</p>"
                ),
            ),
        )

    def _deliver(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
    ) -> None:
        if not self._settings.smtp_enabled:
            logger.warning(
                "SMTP disabled, skipping email '%s' to %s",
                subject,
                to_email,
            )
            return

        message = self._create_message(to_email, subject, text_body, html_body)
        self._send_email(to_email, message)

    def _create_message(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        settings = self._settings
        msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
        msg["To"] = to_email

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        return msg

    def _send_email(self, to_email: str, message: MIMEMultipart) -> None:
        if not self._settings.smtp_host:
            msg = "SMTP host not configured"
            logger.error(msg)
            raise RuntimeError(msg)

        smtp_password = (
            self._settings.smtp_password.get_secret_value()
            if self._settings.smtp_password
            else ""
        )

        try:
            if self._settings.smtp_use_tls and not self._settings.smtp_starttls:
                # Implicit TLS (port 465)
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(
                    self._settings.smtp_host,
                    self._settings.smtp_port,
                    context=context,
                ) as server:
                    if self._settings.smtp_user:
                        server.login(self._settings.smtp_user, smtp_password)
                    server.send_message(message)
            else:
                # STARTTLS (port 587) or plain
                with smtplib.SMTP(
                    self._settings.smtp_host,
                    self._settings.smtp_port,
                ) as server:
                    if self._settings.smtp_starttls:
                        context = ssl.create_default_context()
                        server.starttls(context=context)
                    if self._settings.smtp_user:
                        server.login(self._settings.smtp_user, smtp_password)
                    server.send_message(message)

            logger.info("Email sent to %s", to_email)

        except Exception as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            raise
