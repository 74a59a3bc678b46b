# Middleware package init
"""
Wishlist Backend — Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

Request ID runs first so the access log line and any error body carry the
same correlation ID.
"""
