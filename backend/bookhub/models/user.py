"""
Book Hub Backend - User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   CredentialService (signup, login) and the listing owner foreign key.

Lifecycle:
    Created once at signup. Never mutated, never deleted; there is no
    account-deletion, password-reset or profile-edit path.

Invariants:
    - email is unique (enforced by a unique index, not just the service check)
    - password_hash is never serialized to a client; no response schema has it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from bookhub.database import Base


class User(Base):
    """A registered account that can publish listings and send messages."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Stored lower-cased; the unique index backs the Conflict check under races
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email, unique across all users",
    )

    # werkzeug hash string: "<method>$<salt>$<hash>"
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Salted one-way password hash",
    )

    name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Display name",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
