"""
Book Hub Backend - Auth Route Handlers
========================================

What:  POST /api/auth/signup and POST /api/auth/login.
How:   Delegate to CredentialService, wrap the AuthResult in the envelope.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookhub.database import get_db_session
from bookhub.schemas.auth import AuthResult, LoginRequest, SignupRequest
from bookhub.schemas.common import Envelope, ErrorResponse, ok
from bookhub.services.credential_service import credential_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=Envelope[AuthResult],
    responses={
        400: {"description": "Missing field or email outside allowed domain", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AuthResult]:
    result = await credential_service.register(
        db=db,
        email=body.email,
        password=body.password,
        name=body.name,
    )
    return ok(result, message="Account created.")


@router.post(
    "/login",
    response_model=Envelope[AuthResult],
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AuthResult]:
    """
    Unknown email and wrong password return the same 401 body, so the
    endpoint cannot be used to probe which emails have accounts.
    """
    result = await credential_service.authenticate(
        db=db,
        email=body.email,
        password=body.password,
    )
    return ok(result, message="Login successful.")
