"""
Wishlist Backend — Location & Suggestion Models
===============================================

What:  ORM models for the `locations` and `suggestions` tables.
How:   SQLAlchemy 2.0 typed mappings on the shared DeclarativeBase; Alembic
       revision 001 creates the same schema.

Table design:
    locations
        - UUID primary key generated client-side at insert
        - image_url stays NULL until the object-store write has succeeded
        - image_status records the two-stage upload:
              pending ──store ok──▶ attached
                 └──store failed or abandoned──▶ row removed
          Rows left pending (crash mid-upload) are removed by the startup
          reconciliation pass once they are older than the pending timeout
    suggestions
        - (idea, location_id) is unique: adding an idea is find-or-create
        - votes is an unbounded signed counter, changed one step at a time
        - ON DELETE CASCADE plus ORM cascade: rejecting a Location removes
          its Suggestions in the same transaction
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wishlist.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageStatus(str, enum.Enum):
    PENDING = "pending"
    ATTACHED = "attached"


class Location(Base):
    """
    A submitted physical place awaiting or having received approval.

    Lifecycle:
        1. Created on submission (approved=False, image_status='pending')
        2. Image attached after the object-store write (image_status='attached')
        3. approved toggled by staff
        4. Deleted by staff rejection (Suggestions go with it)
    """

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Object name in the bucket, fixed at creation so an abandoned upload can
    # still be cleaned up before image_url is known
    image_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

    image_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Public URL of the uploaded photo; NULL until the store write succeeds",
    )

    image_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ImageStatus.PENDING.value,
        server_default=text("'pending'"),
        comment="Upload state: pending, attached",
    )

    approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    suggestions: Mapped[List["Suggestion"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
        order_by="Suggestion.created_at",
    )

    __table_args__ = (
        Index("idx_locations_approved", "approved"),
        Index("idx_locations_image_status", "image_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Location(id={self.id}, approved={self.approved}, "
            f"image_status='{self.image_status}')>"
        )


class Suggestion(Base):
    """A user-proposed idea for one Location, with a vote count."""

    __tablename__ = "suggestions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    idea: Mapped[str] = mapped_column(Text, nullable=False)

    votes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    location: Mapped[Location] = relationship(back_populates="suggestions")

    __table_args__ = (
        UniqueConstraint("idea", "location_id", name="uq_suggestions_idea_location"),
    )

    def __repr__(self) -> str:
        return f"<Suggestion(idea='{self.idea}', votes={self.votes}, location_id={self.location_id})>"
