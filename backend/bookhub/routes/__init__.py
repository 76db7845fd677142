# Routes package init
"""
Book Hub Backend - API Routes Package
=======================================

Route Inventory:
    - auth.py:    POST   /api/auth/signup
                  POST   /api/auth/login
    - books.py:   GET    /api/books
                  GET    /api/books/{id}
                  POST   /api/books
                  DELETE /api/books/{id}
                  POST   /api/books/{id}/message
    - health.py:  GET    /health
    - spa.py:     *      /api/{anything else}   → 404 envelope
                  GET    /{path}                → static file or index.html

Routes are thin: parse the request, call a service, wrap the result in the
envelope. spa.router must be included last; its catch-all paths would
otherwise shadow the API.
"""
