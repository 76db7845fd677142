# Middleware package init
"""
Book Hub Backend - Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Body Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Body Limit FIRST: oversize uploads are rejected before anything reads them
    2. Request ID: correlation ID for logging and error envelopes
    3. Logging: method, path, status, duration with the request ID
    4. GZip / CORS: Starlette's stock middleware

    Responses travel back through the chain in reverse order.
"""
