"""
Wishlist Backend — Location Service (Business Logic)
====================================================

What:  Every operation on Locations and Suggestions: submission with photo
       upload, staff approval/rejection, ideas, votes and the read queries.
How:   Composes the session factory (one transaction per operation), the
       ObjectStore and the PhotoService, all injected at construction.
Who:   Called by the route handlers; built once by the app lifespan.

Submission flow (addLocation):

    validate address + photo          ── ValidationError, nothing written
          │
    stage 1: INSERT location (pending), COMMIT
          │
    put_object(<id>.<ext>)  ──fail──▶ DELETE pending row, raise StorageWriteError
          │
    stage 2: SET image_url, status=attached, COMMIT
          │       └──fail──▶ delete object, raise DatabaseError
          ▼                  (row stays pending until reconciliation)
        True

Vote flow (upVote / downVote):

    UPDATE suggestions SET votes = votes ± 1
     WHERE idea = :idea AND location_id = :id
    RETURNING votes

    A single statement: the row lock taken by UPDATE serializes concurrent
    voters, so N parallel upvotes always add exactly N.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from wishlist.config import settings
from wishlist.exceptions import (
    DatabaseError,
    NotFoundError,
    StorageWriteError,
    ValidationError,
)
from wishlist.models.location import ImageStatus, Location, Suggestion
from wishlist.services.object_store import ObjectStore
from wishlist.services.photo_service import PhotoService

logger = logging.getLogger(__name__)


class LocationService:
    """
    Business logic layer for Locations and their Suggestions.

    Error Handling Strategy:
        - Bad input → ValidationError, raised before any write
        - Missing Location / Suggestion → NotFoundError
        - Object store failure → StorageWriteError (pending row removed first)
        - Any SQLAlchemy failure → DatabaseError; the transaction is rolled back
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        object_store: ObjectStore,
        photo_service: Optional[PhotoService] = None,
        pending_timeout: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.object_store = object_store
        self.photo_service = photo_service or PhotoService()
        self.pending_timeout = (
            settings.upload_pending_timeout if pending_timeout is None else pending_timeout
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        One session + transaction. Commits when the block exits normally,
        rolls back on any exception; SQLAlchemy errors surface as DatabaseError.
        """
        try:
            async with self.session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Database error in %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _require_text(value: Optional[str], field: str, message: str) -> str:
        if value is None or not value.strip():
            raise ValidationError(message=message, field=field)
        return value.strip()

    @classmethod
    def parse_location_id(cls, raw) -> uuid.UUID:
        """
        Canonical UUID for a raw id. Surrounding whitespace and the braced
        or hyphenless forms uuid.UUID accepts are all valid.
        """
        if isinstance(raw, uuid.UUID):
            return raw
        text = cls._require_text(raw, "id", "Location ID can't be empty string")
        try:
            return uuid.UUID(text)
        except ValueError:
            raise ValidationError(
                message=f"'{text}' is not a valid location ID",
                field="id",
            )

    @staticmethod
    async def _load_location(
        session: AsyncSession,
        location_id: uuid.UUID,
        for_update: bool = False,
    ) -> Location:
        stmt = (
            select(Location)
            .options(selectinload(Location.suggestions))
            .where(Location.id == location_id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        location = (await session.execute(stmt)).scalar_one_or_none()
        if location is None:
            raise NotFoundError(resource="location", resource_id=str(location_id))
        return location

    async def _query_locations(self, operation: str, *criteria) -> List[Location]:
        stmt = (
            select(Location)
            .options(selectinload(Location.suggestions))
            .where(*criteria)
            .order_by(Location.created_at)
        )
        async with self._transaction(operation) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_locations(self) -> List[Location]:
        """All Locations with their Suggestions, oldest first."""
        return await self._query_locations("locations")

    async def list_approved_locations(self) -> List[Location]:
        return await self._query_locations("approvedLocations", Location.approved.is_(True))

    async def list_submitted_locations(self) -> List[Location]:
        """Locations awaiting a staff decision (approved = false)."""
        return await self._query_locations("submittedLocations", Location.approved.is_(False))

    async def get_location(self, location_id) -> Location:
        """
        Single Location by id.

        Raises:
            ValidationError: empty or malformed id
            NotFoundError: no such Location (including after rejection)
        """
        location_uuid = self.parse_location_id(location_id)
        async with self._transaction("location") as session:
            return await self._load_location(session, location_uuid)

    # ── Submission ────────────────────────────────────────────────────────

    async def add_location(
        self,
        address: Optional[str],
        content: bytes,
        content_type: Optional[str],
        filename: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> Location:
        """
        Create a Location and attach its photo.

        Returns:
            The committed Location with image_status='attached' and a
            non-null image_url.

        Raises:
            ValidationError: empty address, non-image or unsupported type,
                empty or oversized photo. Nothing is written.
            StorageWriteError: the store write failed after retries; the
                pending row has been deleted again.
            DatabaseError: a transaction failed.
        """
        address = self._require_text(address, "address", "Address can't be empty string")
        photo = self.photo_service.validate(
            content=content,
            content_type=content_type,
            filename=filename,
            content_length=content_length,
        )

        # ── Stage 1: pending row ──────────────────────────────────────────
        location_id = uuid.uuid4()
        object_name = photo.object_name(location_id)
        location = Location(
            id=location_id,
            address=address,
            approved=False,
            image_key=object_name,
            image_status=ImageStatus.PENDING.value,
        )
        async with self._transaction("addLocation") as session:
            session.add(location)
        logger.info("Location %s created (image pending)", location_id)

        # ── Upload ────────────────────────────────────────────────────────
        try:
            image_url = await self.object_store.put_object(
                object_name, photo.content, photo.content_type
            )
        except StorageWriteError:
            await self._discard_pending(location_id)
            raise

        # ── Stage 2: attach ───────────────────────────────────────────────
        try:
            async with self._transaction("addLocation") as session:
                # NotFoundError here means staff rejected it mid-upload
                attached = await self._load_location(session, location_id, for_update=True)
                attached.image_url = image_url
                attached.image_status = ImageStatus.ATTACHED.value
        except (DatabaseError, NotFoundError):
            await self.object_store.delete_object(object_name)
            raise

        logger.info("Location %s image attached: %s", location_id, image_url)
        return attached

    async def _discard_pending(self, location_id: uuid.UUID) -> None:
        """
        Compensating delete after a failed upload. If it fails too, the row
        stays pending and reconcile_pending_uploads() removes it later.
        """
        try:
            async with self._transaction("addLocation") as session:
                result = await session.execute(
                    select(Location)
                    .options(selectinload(Location.suggestions))
                    .where(
                        Location.id == location_id,
                        Location.image_status == ImageStatus.PENDING.value,
                    )
                )
                location = result.scalar_one_or_none()
                if location is not None:
                    await session.delete(location)
            logger.warning("Location %s discarded after failed upload", location_id)
        except DatabaseError:
            logger.error(
                "Could not discard pending location %s; left for reconciliation",
                location_id,
            )

    # ── Ideas & Votes ─────────────────────────────────────────────────────

    async def add_idea(self, location_id, idea: Optional[str]) -> bool:
        """
        Find-or-create the Suggestion (idea, location).

        Returns:
            True if a new Suggestion was created, False if it already existed.

        Raises:
            ValidationError: empty id or idea, malformed id
            NotFoundError: the Location does not exist
        """
        location_uuid = self.parse_location_id(location_id)
        idea = self._require_text(idea, "idea", "Idea can't be empty string")

        async with self._transaction("addIdea") as session:
            location = await session.get(Location, location_uuid)
            if location is None:
                raise NotFoundError(resource="location", resource_id=str(location_uuid))

            existing = await session.scalar(
                select(Suggestion.id).where(
                    Suggestion.idea == idea,
                    Suggestion.location_id == location_uuid,
                )
            )
            if existing is not None:
                return False

            try:
                async with session.begin_nested():
                    session.add(Suggestion(idea=idea, location_id=location_uuid, votes=0))
            except IntegrityError:
                # Same pair inserted by a concurrent request
                logger.info("Idea %r for %s created concurrently", idea, location_uuid)
                return False

        logger.info("Idea %r added to location %s", idea, location_uuid)
        return True

    async def up_vote(self, location_id, idea: Optional[str]) -> int:
        """Add one vote; returns the new count."""
        return await self._vote("upVote", location_id, idea, 1)

    async def down_vote(self, location_id, idea: Optional[str]) -> int:
        """Remove one vote (may go negative); returns the new count."""
        return await self._vote("downVote", location_id, idea, -1)

    async def _vote(self, operation: str, location_id, idea: Optional[str], step: int) -> int:
        location_uuid = self.parse_location_id(location_id)
        idea = self._require_text(idea, "idea", "Idea can't be empty string")

        # Both columns in the predicate: the same idea text under another
        # Location is a different Suggestion
        stmt = (
            update(Suggestion)
            .where(
                Suggestion.idea == idea,
                Suggestion.location_id == location_uuid,
            )
            .values(
                votes=Suggestion.votes + step,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(Suggestion.votes)
            .execution_options(synchronize_session=False)
        )

        async with self._transaction(operation) as session:
            votes = (await session.execute(stmt)).scalar_one_or_none()
            if votes is None:
                raise NotFoundError(
                    resource="suggestion",
                    resource_id=idea,
                    context={"location_id": str(location_uuid)},
                )

        logger.debug("%s %r on %s → %d", operation, idea, location_uuid, votes)
        return votes

    # ── Staff actions ─────────────────────────────────────────────────────

    async def approve_location(self, location_id) -> bool:
        """
        Toggle the approved flag and return the new value. Calling it twice
        restores the original state.
        """
        location_uuid = self.parse_location_id(location_id)
        async with self._transaction("approveLocation") as session:
            location = await self._load_location(session, location_uuid, for_update=True)
            location.approved = not location.approved
            approved = location.approved

        logger.info("Location %s approved=%s", location_uuid, approved)
        return approved

    async def reject_location(self, location_id) -> bool:
        """
        Delete the Location and its Suggestions; returns the approved value
        the Location had before deletion. The stored photo is removed after
        the commit.
        """
        location_uuid = self.parse_location_id(location_id)
        async with self._transaction("rejectLocation") as session:
            location = await self._load_location(session, location_uuid, for_update=True)
            approved = location.approved
            image_key = location.image_key
            await session.delete(location)

        logger.info("Location %s rejected and deleted", location_uuid)
        if image_key:
            await self.object_store.delete_object(image_key)
        return approved

    # ── Maintenance ───────────────────────────────────────────────────────

    async def reconcile_pending_uploads(self, now: Optional[datetime] = None) -> int:
        """
        Remove Locations whose upload never finished (still pending after
        pending_timeout seconds) together with any partially written object.

        Returns:
            Number of Locations removed.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=self.pending_timeout)

        async with self._transaction("reconcilePendingUploads") as session:
            result = await session.execute(
                select(Location)
                .options(selectinload(Location.suggestions))
                .where(
                    Location.image_status == ImageStatus.PENDING.value,
                    Location.created_at < cutoff,
                )
            )
            stale = list(result.scalars().all())
            for location in stale:
                await session.delete(location)

        for location in stale:
            if location.image_key:
                await self.object_store.delete_object(location.image_key)

        if stale:
            logger.warning("Reconciliation removed %d abandoned submission(s)", len(stale))
        return len(stale)

    async def run_reconciliation(self, interval: float) -> None:
        """
        Call reconcile_pending_uploads() every `interval` seconds until the
        task is cancelled. Started by the app lifespan next to the startup
        pass; a failed pass is logged and retried on the next tick.
        """
        logger.info("Reconciliation scheduler started (every %ss)", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                await self.reconcile_pending_uploads()
            except DatabaseError as e:
                logger.error("Scheduled reconciliation failed: %s", e.message)
