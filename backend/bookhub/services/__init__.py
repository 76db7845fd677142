# Services package init
"""
Book Hub Backend - Services Layer
===================================

What:  Business logic between routes (HTTP) and database (persistence).

Service Inventory:
    - CredentialService: password hashing, signup, login, token verification
    - ListingService:    listing CRUD and message transcript appends

Services raise BookHubError subclasses; they never build HTTP responses.
"""
