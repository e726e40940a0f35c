from folio_identity.application.ports.notification_gateway import (
    NotificationGateway,
)

__all__ = ["NotificationGateway"]
