# Routes package init
"""
Wishlist Backend — API Routes Package
=====================================

Route Inventory:
    - locations.py: /api/locations/...   (every Location / Suggestion operation)
    - auth.py:      POST /api/auth/sign-in
    - files.py:     GET  /api/files/{bucket}/{name}  (local storage backend)
    - health.py:    GET  /health

Routes stay thin: parse the request, call a service from app.state, shape
the response. Business rules live in wishlist.services.
"""
