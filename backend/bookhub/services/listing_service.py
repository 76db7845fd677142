"""
Book Hub Backend - Listing Service (Business Logic)
=====================================================

What:  List, open, create and delete listings, and append to a listing's
       message transcript.
Who:   Called by the /api/books route handlers.

Ownership rules:
    - With a verified identity, the owner is ALWAYS that identity; any owner,
      contact or ownerName in the request body is ignored.
    - Without one (only possible when AUTH_REQUIRED=false), the owner is taken
      from the body's `contact` / `ownerName`.
    - Delete is owner-only when AUTH_REQUIRED=true. In demo mode any caller
      may delete any listing.
    - Listings created anonymously have no owner user id. If AUTH_REQUIRED is
      later switched on, no caller can delete them through the API.

Message append:
    One INSERT into listing_messages. The service never reads the transcript,
    modifies it and writes it back, so two concurrent appends to the same
    listing both land.

Design:
    ListingService is stateless; it receives the request's session for each
    call. Flushes happen here, commit happens in get_db_session.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookhub.config import settings
from bookhub.exceptions import (
    BookHubError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from bookhub.models.listing import (
    CONDITIONS,
    DEFAULT_CONDITION,
    LISTING_TYPES,
    Listing,
    ListingMessage,
)
from bookhub.schemas.auth import Identity
from bookhub.schemas.listing import (
    CreateListingRequest,
    ListingDetail,
    ListingSummary,
    MessageOut,
    OwnerOut,
)

logger = logging.getLogger(__name__)

_LISTING_TYPES = {t.lower(): t for t in LISTING_TYPES}
_CONDITIONS = {c.lower(): c for c in CONDITIONS}


def _parse_id(listing_id: str) -> uuid.UUID:
    """Malformed ids cannot name a listing, so they are reported as not found."""
    try:
        return uuid.UUID(str(listing_id))
    except ValueError:
        raise NotFoundError(resource="listing", resource_id=str(listing_id))


def _owner(listing: Listing) -> OwnerOut:
    return OwnerOut(
        user_id=str(listing.owner_user_id) if listing.owner_user_id else None,
        name=listing.owner_name,
        email=listing.owner_email,
    )


def _summary_fields(listing: Listing) -> dict:
    return dict(
        id=listing.id,
        title=listing.title,
        author=listing.author,
        description=listing.description,
        listing_type=listing.listing_type,
        exchange=listing.exchange,
        price=listing.price,
        condition=listing.condition,
        image=listing.image,
        owner=_owner(listing),
        contact=listing.contact,
        created_at=listing.created_at,
    )


def _message_out(message: ListingMessage) -> MessageOut:
    return MessageOut(
        sender_name=message.sender_name,
        text=message.text,
        timestamp=message.timestamp,
    )


class ListingService:
    """
    Business logic layer for listing operations.

    Error Handling Strategy:
        Application errors (NotFound, Forbidden, Validation) propagate as-is.
        SQLAlchemy errors are wrapped in DatabaseError, which hides internal
        details from the client and is logged by the global handler.
    """

    async def list_listings(self, db: AsyncSession) -> List[ListingSummary]:
        """
        All listings, newest first, without their message transcripts.

        Query plan:
            SELECT ... FROM listings ORDER BY created_at DESC, id DESC
            → idx_listings_created_at
        """
        try:
            result = await db.execute(
                select(Listing).order_by(desc(Listing.created_at), desc(Listing.id))
            )
            listings = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing books: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch listings.",
                context={"error_type": type(e).__name__},
            )

        return [ListingSummary(**_summary_fields(listing)) for listing in listings]

    async def get_listing(self, db: AsyncSession, listing_id: str) -> ListingDetail:
        """
        A single listing including its messages in insertion order.

        Raises:
            NotFoundError: no listing has that id
        """
        listing = await self._load(db, listing_id, with_messages=True)
        return ListingDetail(
            **_summary_fields(listing),
            messages=[_message_out(m) for m in listing.messages],
        )

    async def create_listing(
        self,
        db: AsyncSession,
        identity: Optional[Identity],
        fields: CreateListingRequest,
    ) -> ListingDetail:
        """
        Publish a new listing.

        Args:
            db:       Request session
            identity: Verified caller, or None for anonymous demo-mode callers
            fields:   Request body

        Raises:
            ValidationError: a required field is missing or has an unknown value
        """
        title = (fields.title or "").strip()
        if not title:
            raise ValidationError(message="Title is required.", field="title")

        listing_type = _LISTING_TYPES.get((fields.listing_type or "").strip().lower())
        if listing_type is None:
            raise ValidationError(
                message=f"Listing type must be one of: {', '.join(LISTING_TYPES)}",
                field="listingType",
            )

        condition = DEFAULT_CONDITION
        if fields.condition and fields.condition.strip():
            condition = _CONDITIONS.get(fields.condition.strip().lower())
            if condition is None:
                raise ValidationError(
                    message=f"Condition must be one of: {', '.join(CONDITIONS)}",
                    field="condition",
                )

        # Price only means something for Sell
        price = 0.0
        if listing_type == "Sell":
            if fields.price is None:
                raise ValidationError(message="Price is required for Sell listings.", field="price")
            if fields.price < 0:
                raise ValidationError(message="Price cannot be negative.", field="price")
            price = float(fields.price)

        if identity is not None:
            try:
                owner_user_id = uuid.UUID(identity.user_id)
            except ValueError:
                raise UnauthorizedError(message="Invalid token.")
            owner_name, owner_email = identity.name, identity.email
        else:
            contact = (fields.contact or "").strip()
            if not contact:
                raise ValidationError(
                    message="Missing required fields (including contact).",
                    field="contact",
                )
            owner_user_id = None
            owner_email = contact
            owner_name = (fields.owner_name or "").strip() or contact

        description = (fields.description or "").strip() or title

        listing = Listing(
            title=title,
            author=(fields.author or "").strip() or None,
            description=description,
            listing_type=listing_type,
            price=price,
            condition=condition,
            image=fields.image or None,
            owner_user_id=owner_user_id,
            owner_name=owner_name,
            owner_email=owner_email,
        )

        try:
            db.add(listing)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating listing: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to publish.",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Listing published: %s (%s) by %s",
            listing.id,
            listing.listing_type,
            owner_user_id or "anonymous",
        )
        return ListingDetail(**_summary_fields(listing), messages=[])

    async def delete_listing(
        self,
        db: AsyncSession,
        identity: Optional[Identity],
        listing_id: str,
    ) -> None:
        """
        Permanently remove a listing and its transcript.

        Raises:
            NotFoundError:  no listing has that id
            ForbiddenError: AUTH_REQUIRED and the caller is not the owner
        """
        listing = await self._load(db, listing_id, with_messages=False)

        if settings.auth_required:
            if identity is None:
                raise UnauthorizedError(message="Token required.")
            if listing.owner_user_id is None or str(listing.owner_user_id) != identity.user_id:
                logger.warning(
                    "User %s attempted to delete listing %s owned by %s",
                    identity.user_id,
                    listing.id,
                    listing.owner_user_id,
                )
                raise ForbiddenError(message="Only the owner can delete this listing.")

        try:
            await db.execute(delete(ListingMessage).where(ListingMessage.listing_id == listing.id))
            await db.execute(delete(Listing).where(Listing.id == listing.id))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting listing %s: %s", listing.id, str(e))
            raise DatabaseError(
                message="Failed to delete.",
                context={"listing_id": str(listing.id)},
            )

        logger.info("Listing deleted: %s", listing.id)

    async def append_message(
        self,
        db: AsyncSession,
        identity: Optional[Identity],
        listing_id: str,
        text: Optional[str],
        by: Optional[str] = None,
    ) -> MessageOut:
        """
        Append one message to the end of a listing's transcript.

        The sender is the verified identity's name; anonymous callers must
        supply `by`. Returns only the new message.

        Raises:
            NotFoundError:   no listing has that id
            ValidationError: empty text, or anonymous sender without a name
        """
        parsed_id = _parse_id(listing_id)

        if not text or not text.strip():
            raise ValidationError(message="Message text is required.", field="text")

        if identity is not None:
            sender_name = identity.name
        else:
            sender_name = (by or "").strip()
            if not sender_name:
                raise ValidationError(message="Sender name is required.", field="by")

        try:
            exists = await db.execute(select(Listing.id).where(Listing.id == parsed_id))
            if exists.scalar_one_or_none() is None:
                raise NotFoundError(resource="listing", resource_id=str(parsed_id))

            message = ListingMessage(
                listing_id=parsed_id,
                sender_name=sender_name,
                text=text,
            )
            db.add(message)
            await db.flush()
        except BookHubError:
            raise
        except IntegrityError:
            # Listing deleted between the existence check and the insert
            raise NotFoundError(resource="listing", resource_id=str(parsed_id))
        except SQLAlchemyError as e:
            logger.error("Database error appending message to %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Failed to message.",
                context={"listing_id": str(parsed_id)},
            )

        return _message_out(message)

    async def _load(self, db: AsyncSession, listing_id: str, with_messages: bool) -> Listing:
        parsed_id = _parse_id(listing_id)
        query = select(Listing).where(Listing.id == parsed_id)
        if with_messages:
            query = query.options(selectinload(Listing.messages))

        try:
            result = await db.execute(query)
            listing = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching listing %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the listing. Please try again.",
                context={"listing_id": str(parsed_id)},
            )

        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(parsed_id))
        return listing


# ── Singleton Instance ────────────────────────────────────────────────────
listing_service = ListingService()
