from folio_identity.infrastructure.scheduling.cleanup_scheduler import (
    AccountCleanupScheduler,
)

__all__ = ["AccountCleanupScheduler"]
