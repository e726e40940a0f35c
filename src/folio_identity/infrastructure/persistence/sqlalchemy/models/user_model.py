"""SQLAlchemy model for the User aggregate."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from folio_identity.infrastructure.persistence.sqlalchemy.base import (
    Base,
    TimestampMixin,
)

_LIVE_ROWS = text("deleted_at IS NULL")


class UserModel(Base, TimestampMixin):
    """SQLAlchemy model for persisting User aggregates.

    Email uniqueness is enforced only among live rows, so an address
    freed by cleanup can sign up again while the old row awaits
    permanent deletion.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            postgresql_where=_LIVE_ROWS,
            sqlite_where=_LIVE_ROWS,
        ),
        Index("ix_users_verified_created", "is_verified", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # SHA-256 hex digests of the opaque link tokens
    verification_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    verification_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    consumed_verification_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    password_reset_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    password_reset_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Profile
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    first_name_kana: Mapped[str] = mapped_column(
        String(100),
        default="",
        nullable=False,
    )
    last_name_kana: Mapped[str] = mapped_column(
        String(100),
        default="",
        nullable=False,
    )
    school_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    department: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    laboratory: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    graduation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    desired_job_types: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    self_introduction: Mapped[str] = mapped_column(Text, default="", nullable=False)
    profile_image_url: Mapped[str] = mapped_column(
        String(1024),
        default="",
        nullable=False,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<UserModel(id={self.id}, email={self.email}, "
            f"verified={self.is_verified}, deleted_at={self.deleted_at})>"
        )
