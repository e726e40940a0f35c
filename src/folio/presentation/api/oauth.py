"""Google OAuth client (Authlib Starlette integration).

The client is registered once in create_app() and stored on app.state.
Authlib keeps the OAuth ``state`` in the signed session cookie, so
SessionMiddleware must be installed whenever the client exists.
"""

import logging
from collections.abc import Mapping
from typing import Any

from authlib.integrations.starlette_client import OAuth

from folio_config.settings import Settings
from folio_identity import ExternalIdentityProfile
from folio_identity.exceptions import InvalidEmailError

logger = logging.getLogger(__name__)

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"


def init_oauth(settings: Settings) -> OAuth | None:
    """Register the Google client, or return None if it is not configured."""
    if not settings.google_oauth_enabled:
        logger.info("Google OAuth disabled (GOOGLE_CLIENT_ID/SECRET not set)")
        return None

    oauth = OAuth()
    oauth.register(
        name="google",
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret.get_secret_value(),
        server_metadata_url=GOOGLE_METADATA_URL,
        client_kwargs={
            "scope": "openid email profile",
            "prompt": "select_account",
        },
    )
    logger.info("Google OAuth client registered")
    return oauth


def profile_from_userinfo(userinfo: Mapping[str, Any]) -> ExternalIdentityProfile:
    """Convert Google's OpenID Connect claims into an ExternalIdentityProfile."""
    email = userinfo.get("email")
    if not email:
        msg = "Email not provided by identity provider"
        raise InvalidEmailError(msg)

    return ExternalIdentityProfile(
        email=email,
        given_name=userinfo.get("given_name") or "",
        family_name=userinfo.get("family_name") or "",
    )
