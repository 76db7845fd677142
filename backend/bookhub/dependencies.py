"""
Book Hub Backend - Request Dependencies
========================================

What:  FastAPI dependencies that turn the Authorization header into an Identity.
How:   HTTPBearer(auto_error=False) extracts "Bearer <token>"; CredentialService
       verifies it. The verified identity is also stored on request.state.

Policy:
    get_optional_identity   - token optional, but a supplied token must be valid
    get_actor               - mandatory when AUTH_REQUIRED, optional otherwise;
                              used by the listing write routes
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookhub.config import settings
from bookhub.exceptions import UnauthorizedError
from bookhub.schemas.auth import Identity
from bookhub.services.credential_service import credential_service

bearer_scheme = HTTPBearer(auto_error=False, description="Token from /api/auth/login")


async def get_optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    if credentials is None:
        # Header present but not a Bearer scheme
        if request.headers.get("Authorization"):
            raise UnauthorizedError(message="Invalid token.")
        return None

    identity = credential_service.verify(credentials.credentials)
    request.state.identity = identity
    return identity


async def get_actor(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Optional[Identity]:
    """Identity for listing writes, honouring the AUTH_REQUIRED policy."""
    if identity is None and settings.auth_required:
        raise UnauthorizedError(message="Token required.")
    return identity
