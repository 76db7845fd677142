"""
Book Hub Backend - Authentication Schemas
==========================================

Request bodies for signup/login, the result returned by both, and the
Identity carried inside bearer tokens.

Request fields are Optional on purpose: a missing field is reported by the
credential service as a single "All fields are required." InvalidInput error
rather than a per-field schema error.
"""

from typing import Optional

from pydantic import EmailStr, Field

from bookhub.schemas.common import CamelModel


class SignupRequest(CamelModel):
    email: Optional[EmailStr] = Field(default=None, description="Account email")
    password: Optional[str] = Field(default=None, description="Plaintext password")
    name: Optional[str] = Field(default=None, description="Display name")


class LoginRequest(CamelModel):
    # Plain str: a malformed email must fail like any other bad login (401)
    email: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)


class Identity(CamelModel):
    """Verified claims carried by a bearer token."""

    user_id: str = Field(description="User id (UUID string)")
    name: str
    email: str


class AuthResult(CamelModel):
    """Returned by signup and login: who you are plus a fresh token."""

    user_id: str
    name: str
    email: str
    token: str = Field(description="Signed bearer token, send as 'Authorization: Bearer <token>'")
