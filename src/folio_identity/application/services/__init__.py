"""Application services for identity management."""

from folio_identity.application.services.account_service import AccountService

__all__ = ["AccountService"]
