# Models package init
"""ORM models. Importing the package registers every table with Base.metadata."""

from wishlist.models.location import ImageStatus, Location, Suggestion

__all__ = ["ImageStatus", "Location", "Suggestion"]
