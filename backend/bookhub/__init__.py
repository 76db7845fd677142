"""
Book Hub Backend - Application Package Initializer
===================================================

What: Marks the `bookhub` directory as a Python package.
Who:  Used by uvicorn (`bookhub.main:app`), pytest, and the service modules.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, envelope, auth deps
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← credentials, listings
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never build HTTP responses.
"""

__version__ = "1.0.0"
