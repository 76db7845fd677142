"""
Book Hub Backend - Listing SQLAlchemy Models
==============================================

What:  ORM models for the `listings` table and its embedded message transcript
       (`listing_messages`).
Who:   ListingService for every listing operation.

Table Design:
    - UUID primary key
    - listing_type: 'Sell' | 'Buy' | 'Exchange'
    - price: only meaningful for 'Sell'; stored as 0 otherwise
    - image: base64 / data-URL text kept inline in the row (no object storage)
    - owner_*: structured owner {user_id, name, email}, immutable after insert.
      owner_user_id is NULL only for listings created with AUTH_REQUIRED=false.
    - created_at: default sort key, newest first

Message transcript:
    Messages belong to exactly one listing and are only ever read through it.
    Each append is a single INSERT; the integer primary key gives the
    insertion order. Rows are never updated, reordered, or deleted except
    together with their listing.

Index on created_at DESC:
    Backs the listing grid query (ORDER BY created_at DESC).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookhub.database import Base

LISTING_TYPES = ("Sell", "Buy", "Exchange")
CONDITIONS = ("Like New", "Good", "Fair")
DEFAULT_CONDITION = "Good"


class ListingMessage(Base):
    """One entry of a listing's chat-like transcript."""

    __tablename__ = "listing_messages"

    # Autoincrement id doubles as the transcript position
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sender_name: Mapped[str] = mapped_column(String(120), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<ListingMessage(id={self.id}, listing_id={self.listing_id})>"


class Listing(Base):
    """
    A marketplace record describing a book for sale, wanted, or offered for exchange.

    Query Patterns:
        - Grid: SELECT ... ORDER BY created_at DESC (messages not loaded)
        - Detail: SELECT ... WHERE id = :uuid, messages loaded with selectinload
    """

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    author: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    listing_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Sell, Buy or Exchange",
    )

    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    condition: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DEFAULT_CONDITION,
        comment="Like New, Good or Fair",
    )

    # Inline picture; may be several megabytes
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Owner ─────────────────────────────────────────────────────────────
    owner_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    owner_name: Mapped[str] = mapped_column(String(120), nullable=False)
    owner_email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        comment="Contact string shown to buyers",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # lazy="raise": the grid projection must never pull the transcript in;
    # the detail query opts in explicitly.
    messages: Mapped[List[ListingMessage]] = relationship(
        order_by=ListingMessage.id,
        lazy="raise",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_listings_created_at", created_at.desc()),
    )

    @property
    def exchange(self) -> bool:
        """Legacy boolean flag, derived from listing_type."""
        return self.listing_type == "Exchange"

    @property
    def contact(self) -> str:
        """Display contact string, derived from the structured owner."""
        return self.owner_email

    def __repr__(self) -> str:
        return (
            f"<Listing(id={self.id}, type='{self.listing_type}', "
            f"created_at='{self.created_at}')>"
        )
