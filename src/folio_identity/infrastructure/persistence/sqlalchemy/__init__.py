"""SQLAlchemy implementation for folio_identity persistence.

Provides:
- Base: Declarative base for identity models
- UserModel: SQLAlchemy model for users
- UserRepositorySQLAlchemy: Repository implementation for users
- create_engine / create_session_maker / create_tables: database wiring
"""

from folio_identity.infrastructure.persistence.sqlalchemy.base import Base
from folio_identity.infrastructure.persistence.sqlalchemy.database import (
    create_engine,
    create_session_maker,
    create_tables,
    drop_tables,
)
from folio_identity.infrastructure.persistence.sqlalchemy.models import UserModel
from folio_identity.infrastructure.persistence.sqlalchemy.repositories import (
    UserRepositorySQLAlchemy,
)

__all__ = [
    "Base",
    "UserModel",
    "UserRepositorySQLAlchemy",
    "create_engine",
    "create_session_maker",
    "create_tables",
    "drop_tables",
]
