"""
Book Hub Backend - Book Listing Route Handlers
================================================

What:  CRUD over listings plus the message transcript append.
How:   Extract identity via get_actor (honours AUTH_REQUIRED), delegate to
       ListingService, wrap results in the envelope.

Caching:
    GET /api/books is served with Cache-Control: no-store. The client treats
    its rendered grid as disposable and refetches after every mutation.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from bookhub.database import get_db_session
from bookhub.dependencies import get_actor
from bookhub.schemas.auth import Identity
from bookhub.schemas.common import Envelope, ErrorResponse, ok
from bookhub.schemas.listing import (
    CreateListingRequest,
    ListingDetail,
    ListingSummary,
    MessageOut,
    MessageRequest,
)
from bookhub.services.listing_service import listing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["Books"])


@router.get(
    "",
    response_model=Envelope[List[ListingSummary]],
    summary="List all listings, newest first",
    description="Returns every listing without its message transcript.",
)
async def list_books(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[List[ListingSummary]]:
    listings = await listing_service.list_listings(db)
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Total-Count"] = str(len(listings))
    return ok(listings)


@router.get(
    "/{listing_id}",
    response_model=Envelope[ListingDetail],
    responses={404: {"description": "Listing not found", "model": ErrorResponse}},
    summary="Open a single listing with its messages",
)
async def get_book(
    listing_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[ListingDetail]:
    listing = await listing_service.get_listing(db, listing_id)
    return ok(listing)


@router.post(
    "",
    status_code=201,
    response_model=Envelope[ListingDetail],
    responses={
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        401: {"description": "Token required or invalid", "model": ErrorResponse},
        413: {"description": "Body too large", "model": ErrorResponse},
    },
    summary="Publish a listing",
)
async def create_book(
    body: CreateListingRequest,
    identity: Optional[Identity] = Depends(get_actor),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[ListingDetail]:
    listing = await listing_service.create_listing(db, identity, body)
    return ok(listing, message="Listing published.")


@router.delete(
    "/{listing_id}",
    response_model=Envelope,
    responses={
        401: {"description": "Token required or invalid", "model": ErrorResponse},
        403: {"description": "Caller is not the owner", "model": ErrorResponse},
        404: {"description": "Listing not found", "model": ErrorResponse},
    },
    summary="Delete a listing",
)
async def delete_book(
    listing_id: str,
    identity: Optional[Identity] = Depends(get_actor),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope:
    await listing_service.delete_listing(db, identity, listing_id)
    return ok(None, message="Deleted.")


@router.post(
    "/{listing_id}/message",
    status_code=201,
    response_model=Envelope[MessageOut],
    responses={
        400: {"description": "Empty message", "model": ErrorResponse},
        401: {"description": "Token required or invalid", "model": ErrorResponse},
        404: {"description": "Listing not found", "model": ErrorResponse},
    },
    summary="Send a message on a listing",
    description="Appends to the listing's transcript and returns only the new message.",
)
async def message_book(
    listing_id: str,
    body: MessageRequest,
    identity: Optional[Identity] = Depends(get_actor),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[MessageOut]:
    message = await listing_service.append_message(
        db,
        identity,
        listing_id,
        text=body.text,
        by=body.by,
    )
    return ok(message, message="Message sent.")
