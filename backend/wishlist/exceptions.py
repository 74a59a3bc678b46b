"""
Wishlist Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for each failure the API can report.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into JSON error
       responses with the matching HTTP status code.

Exception Hierarchy:
    WishlistError (base)
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── AuthenticationError   → 401 Unauthorized
    ├── NotFoundError         → 404 Not Found
    ├── StorageWriteError     → 502 Bad Gateway (object store failed)
    └── DatabaseError         → 500 Internal Server Error

Services raise these instead of returning falsy values, so a caller can
always tell "the idea already existed" (False) from "the location does not
exist" (NotFoundError) from "the upload failed" (StorageWriteError).
"""

from typing import Any, Dict, Optional


class WishlistError(Exception):
    """
    Root of the exception hierarchy.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only partly returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WishlistError):
    """
    Raised when client input fails validation.

    When:    Empty address or idea, malformed location id, non-image upload,
             empty or oversized photo.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "The uploaded file has to be an image",
            "details": {"field": "photo", "content_type": "application/pdf"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(WishlistError):
    """Bad staff credentials, or a missing/expired/forged bearer token. HTTP 401."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(WishlistError):
    """
    Raised when a referenced Location or Suggestion does not exist.

    SQLAlchemy returns None (or zero affected rows) for missing records; the
    service layer converts that into this exception.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageWriteError(WishlistError):
    """
    Raised when the object store rejects or fails a write after all retries.

    HTTP:    502 Bad Gateway

    When this is raised from addLocation, the pending Location row has
    already been removed, so the submission can simply be retried.
    """

    def __init__(
        self,
        message: str = "Storing the uploaded image failed. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WishlistError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error

    The client always receives a generic message; the SQL error is logged
    server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
