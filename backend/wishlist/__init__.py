"""
Wishlist Backend — Application Package
======================================

What: Community submission platform. People propose a Location (address +
      photo), staff approve or reject it, and approved Locations collect
      Suggestions that can be upvoted or downvoted.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, transactions, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Object store (I/O)     │  ← async sessions, blob storage
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
