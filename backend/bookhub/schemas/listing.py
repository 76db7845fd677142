"""
Book Hub Backend - Listing Schemas
====================================

What:  API contract for listings and their message transcript.

Projections:
    ListingSummary  - grid view, returned by GET /api/books. Never includes
                      messages (the transcript can be long and is only needed
                      once a listing is opened).
    ListingDetail   - single listing with its messages, returned by
                      GET /api/books/{id} and POST /api/books.

Legacy input keys:
    Older clients send the listing type as `type`; it is accepted alongside
    `listingType` / `listing_type`. Any `owner` object in the request body is
    ignored; ownership comes from the verified identity.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field

from bookhub.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateListingRequest(CamelModel):
    """
    Body of POST /api/books.

    `contact` and `owner_name` are only read when the caller is anonymous
    (AUTH_REQUIRED=false and no token); otherwise they are replaced by the
    authenticated identity.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    listing_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("listingType", "listing_type", "type"),
        serialization_alias="listingType",
        description="Sell, Buy or Exchange",
    )
    condition: Optional[str] = Field(default=None, description="Like New, Good or Fair")
    image: Optional[str] = Field(default=None, description="Base64 or data-URL encoded picture")
    contact: Optional[str] = None
    owner_name: Optional[str] = None


class MessageRequest(CamelModel):
    """Body of POST /api/books/{id}/message. `by` is read only for anonymous senders."""

    text: Optional[str] = None
    by: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class OwnerOut(CamelModel):
    user_id: Optional[str] = Field(default=None, description="Null for anonymous listings")
    name: str
    email: str


class MessageOut(CamelModel):
    sender_name: str
    text: str
    timestamp: datetime


class ListingSummary(CamelModel):
    id: uuid.UUID
    title: str
    author: Optional[str] = None
    description: str
    listing_type: str
    exchange: bool
    price: float
    condition: str
    image: Optional[str] = None
    owner: OwnerOut
    contact: str
    created_at: datetime


class ListingDetail(ListingSummary):
    messages: List[MessageOut] = Field(default_factory=list)
