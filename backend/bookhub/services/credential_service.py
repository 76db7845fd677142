"""
Book Hub Backend - Credential Service
=======================================

What:  Signup, login and bearer-token verification.
How:   Passwords are hashed with werkzeug's salted one-way hash; tokens are
       HS256 JWTs (PyJWT) carrying {userId, name, email} and an expiry.
Who:   Auth routes (register/authenticate) and the identity dependency (verify).

Flow:
    register(email, password, name)
        → validate fields / domain → reject duplicate email (409)
        → hash password in worker thread → INSERT user → mint token
    authenticate(email, password)
        → SELECT user → compare hash in worker thread → mint token
        → unknown email and wrong password produce the same 401
    verify(token)
        → decode + signature + expiry check → Identity

Hashing is CPU-bound, so it runs in Starlette's threadpool and never blocks
the event loop that serves other requests.

There is no logout, revocation, refresh-token or password-reset flow; a
token stays valid until it expires.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from werkzeug.security import check_password_hash, generate_password_hash

from bookhub.config import settings
from bookhub.exceptions import (
    ConflictError,
    DatabaseError,
    UnauthorizedError,
    ValidationError,
)
from bookhub.models.user import User
from bookhub.schemas.auth import AuthResult, Identity

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."

# Compared against when the email is unknown, so both login failure paths
# spend the same hashing time.
_DUMMY_HASH = generate_password_hash("bookhub-dummy-password")


class CredentialService:
    """
    Stateless given the signing secret (read from settings on every call).

    Responsibilities:
        - register(): create account, return identity + token
        - authenticate(): check password, return identity + token
        - verify(): turn a bearer token into an Identity
    """

    # ── Password primitives ───────────────────────────────────────────────

    async def hash_password(self, password: str) -> str:
        """One-way hash with a random per-account salt, off the event loop."""
        return await run_in_threadpool(generate_password_hash, password)

    async def check_password(self, password_hash: str, password: str) -> bool:
        return await run_in_threadpool(check_password_hash, password_hash, password)

    # ── Token primitives ──────────────────────────────────────────────────

    def issue_token(self, user: User) -> str:
        """Sign a token embedding the user's identity, valid for TOKEN_TTL_DAYS."""
        now = datetime.now(timezone.utc)
        claims = {
            "userId": str(user.id),
            "name": user.name,
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(days=settings.token_ttl_days),
        }
        return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def verify(self, token: Optional[str]) -> Identity:
        """
        Verify a bearer token and return its identity claims.

        Raises:
            UnauthorizedError: token missing, malformed, tampered with or expired
        """
        if not token:
            raise UnauthorizedError(message="Token required.")

        try:
            claims = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["exp", "userId", "email"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError(message="Token expired.", context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError(message="Invalid token.", context={"reason": type(e).__name__})

        return Identity(
            user_id=str(claims["userId"]),
            name=str(claims.get("name", "")),
            email=str(claims["email"]),
        )

    # ── Operations ────────────────────────────────────────────────────────

    async def register(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str],
    ) -> AuthResult:
        """
        Create an account and log it in.

        Raises:
            ValidationError: a field is missing/blank, or the email is outside
                             ALLOWED_EMAIL_DOMAIN
            ConflictError:   the email already has an account
            DatabaseError:   the insert failed for any other reason
        """
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not email or not password or not name:
            raise ValidationError(message="All fields are required.")

        domain = settings.allowed_email_domain
        if domain and not email.endswith(domain):
            raise ValidationError(message=f"Email must end with {domain}", field="email")

        try:
            existing = await db.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(message="Account exists.")

            user = User(
                email=email,
                password_hash=await self.hash_password(password),
                name=name,
            )
            db.add(user)
            # Flush assigns the id; the unique index catches a concurrent signup
            await db.flush()
        except ConflictError:
            raise
        except IntegrityError:
            raise ConflictError(message="Account exists.")
        except SQLAlchemyError as e:
            logger.error("Database error during signup: %s", str(e))
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return AuthResult(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            token=self.issue_token(user),
        )

    async def authenticate(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> AuthResult:
        """
        Log in with email and password.

        Raises:
            ValidationError:   a field is missing
            UnauthorizedError: unknown email or wrong password (same message)
        """
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError(message="Email and password are required.")

        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(
                message="Could not log in. Please try again.",
                context={"error_type": type(e).__name__},
            )

        password_hash = user.password_hash if user is not None else _DUMMY_HASH
        matches = await self.check_password(password_hash, password)
        if user is None or not matches:
            raise UnauthorizedError(message=INVALID_CREDENTIALS)

        return AuthResult(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            token=self.issue_token(user),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
credential_service = CredentialService()
