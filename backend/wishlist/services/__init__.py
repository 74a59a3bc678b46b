# Services package init
"""
Wishlist Backend — Services Layer
=================================

What:  Business logic between the routes (HTTP) and the database/object store.
How:   Services are constructed once in the app lifespan with their
       collaborators injected, stored on app.state, and handed to routes
       through the dependencies in wishlist.dependencies.

Service Inventory:
    - PhotoService: validation of uploaded photos (type, size) and object naming
    - ObjectStore (abstract): LocalObjectStore / S3ObjectStore blob writes with retries
    - LocationService: every Location / Suggestion operation
    - AuthService: staff sign-in and bearer token verification
"""
