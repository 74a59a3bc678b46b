"""
Wishlist Backend — Location Route Handlers
==========================================

What:  HTTP surface for every Location / Suggestion operation.
How:   Thin handlers: pull data out of the request, call LocationService,
       shape the response. Errors propagate as WishlistError subclasses and
       are rendered by the global handlers in main.py.

Routes (operation_id in brackets):
    GET  /api/locations                        [locations]
    GET  /api/locations/approved               [approvedLocations]
    GET  /api/locations/submitted   (staff)    [submittedLocations]
    GET  /api/locations/{id}                   [location]
    POST /api/locations                        [addLocation]
    POST /api/locations/{id}/approve (staff)   [approveLocation]
    POST /api/locations/{id}/reject  (staff)   [rejectLocation]
    POST /api/locations/{id}/ideas             [addIdea]
    POST /api/locations/{id}/ideas/upvote      [upVote]
    POST /api/locations/{id}/ideas/downvote    [downVote]
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from wishlist.dependencies import get_location_service, require_staff
from wishlist.schemas.location import (
    ApprovalResponse,
    ErrorResponse,
    IdeaRequest,
    IdeaResponse,
    LocationResponse,
    SubmissionResponse,
    VoteResponse,
)
from wishlist.services.location_service import LocationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/locations", tags=["Locations"])

_not_found = {404: {"description": "Location not found", "model": ErrorResponse}}
_bad_request = {400: {"description": "Invalid input", "model": ErrorResponse}}
_unauthorized = {401: {"description": "Staff token missing or invalid", "model": ErrorResponse}}


# ── Reads ─────────────────────────────────────────────────────────────────
# Fixed paths are declared before /{location_id} so they are matched first


@router.get(
    "",
    response_model=List[LocationResponse],
    operation_id="locations",
    summary="List every location",
)
async def list_locations(
    service: LocationService = Depends(get_location_service),
):
    return await service.list_locations()


@router.get(
    "/approved",
    response_model=List[LocationResponse],
    operation_id="approvedLocations",
    summary="List approved locations",
)
async def list_approved_locations(
    service: LocationService = Depends(get_location_service),
):
    return await service.list_approved_locations()


@router.get(
    "/submitted",
    response_model=List[LocationResponse],
    operation_id="submittedLocations",
    responses=_unauthorized,
    summary="List locations awaiting approval",
    dependencies=[Depends(require_staff)],
)
async def list_submitted_locations(
    service: LocationService = Depends(get_location_service),
):
    return await service.list_submitted_locations()


@router.get(
    "/{location_id}",
    response_model=LocationResponse,
    operation_id="location",
    responses={**_bad_request, **_not_found},
    summary="Get one location with its suggestions",
)
async def get_location(
    location_id: str,
    service: LocationService = Depends(get_location_service),
):
    return await service.get_location(location_id)


# ── Submission ────────────────────────────────────────────────────────────


@router.post(
    "",
    status_code=201,
    response_model=SubmissionResponse,
    operation_id="addLocation",
    responses={
        **_bad_request,
        502: {"description": "Photo could not be stored", "model": ErrorResponse},
    },
    summary="Submit a location with a photo",
    description=(
        "Multipart form with `address` and `photo`. The location is created "
        "unapproved; the photo is stored and its public URL attached before "
        "the response is sent."
    ),
)
async def add_location(
    address: Optional[str] = Form(default=None, description="Street address"),
    photo: Optional[UploadFile] = File(default=None, description="Image of the location"),
    service: LocationService = Depends(get_location_service),
) -> SubmissionResponse:
    # Missing fields are passed through as empty so the service reports them
    # in its usual validation order (address, then photo)
    content = b""
    content_type = None
    filename = None
    size = None
    if photo is not None:
        content = await photo.read()
        content_type = photo.content_type
        filename = photo.filename
        size = photo.size

    try:
        location = await service.add_location(
            address=address,
            content=content,
            content_type=content_type,
            filename=filename,
            content_length=size,
        )
    finally:
        if photo is not None:
            await photo.close()

    return SubmissionResponse(success=True, id=location.id, image_url=location.image_url)


# ── Staff actions ─────────────────────────────────────────────────────────


@router.post(
    "/{location_id}/approve",
    response_model=ApprovalResponse,
    operation_id="approveLocation",
    responses={**_bad_request, **_unauthorized, **_not_found},
    summary="Toggle a location's approval",
    dependencies=[Depends(require_staff)],
)
async def approve_location(
    location_id: str,
    service: LocationService = Depends(get_location_service),
) -> ApprovalResponse:
    location_uuid = service.parse_location_id(location_id)
    approved = await service.approve_location(location_uuid)
    return ApprovalResponse(id=location_uuid, approved=approved)


@router.post(
    "/{location_id}/reject",
    response_model=ApprovalResponse,
    operation_id="rejectLocation",
    responses={**_bad_request, **_unauthorized, **_not_found},
    summary="Reject and delete a location",
    dependencies=[Depends(require_staff)],
)
async def reject_location(
    location_id: str,
    service: LocationService = Depends(get_location_service),
) -> ApprovalResponse:
    location_uuid = service.parse_location_id(location_id)
    approved = await service.reject_location(location_uuid)
    return ApprovalResponse(id=location_uuid, approved=approved)


# ── Ideas & Votes ─────────────────────────────────────────────────────────


@router.post(
    "/{location_id}/ideas",
    response_model=IdeaResponse,
    operation_id="addIdea",
    responses={**_bad_request, **_not_found},
    summary="Add an idea (no-op if it already exists)",
)
async def add_idea(
    location_id: str,
    body: IdeaRequest,
    service: LocationService = Depends(get_location_service),
) -> IdeaResponse:
    created = await service.add_idea(location_id, body.idea)
    return IdeaResponse(created=created)


@router.post(
    "/{location_id}/ideas/upvote",
    response_model=VoteResponse,
    operation_id="upVote",
    responses={**_bad_request, **_not_found},
    summary="Add one vote to an idea",
)
async def up_vote(
    location_id: str,
    body: IdeaRequest,
    service: LocationService = Depends(get_location_service),
) -> VoteResponse:
    votes = await service.up_vote(location_id, body.idea)
    return VoteResponse(idea=body.idea.strip(), votes=votes)


@router.post(
    "/{location_id}/ideas/downvote",
    response_model=VoteResponse,
    operation_id="downVote",
    responses={**_bad_request, **_not_found},
    summary="Remove one vote from an idea",
)
async def down_vote(
    location_id: str,
    body: IdeaRequest,
    service: LocationService = Depends(get_location_service),
) -> VoteResponse:
    votes = await service.down_vote(location_id, body.idea)
    return VoteResponse(idea=body.idea.strip(), votes=votes)
