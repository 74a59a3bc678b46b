"""
Wishlist Backend — Local Object Serving
=======================================

GET /api/files/{bucket}/{name}

Serves photos written by LocalObjectStore so that imageURL values work in
development (STORAGE_PUBLIC_BASE_URL=http://localhost:8000/api/files).
With the S3 backend the images are served by the bucket itself and this
route always answers 404.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from wishlist.dependencies import get_object_store
from wishlist.exceptions import NotFoundError, ValidationError
from wishlist.schemas.location import ErrorResponse
from wishlist.services.object_store import LocalObjectStore, ObjectStore
from wishlist.services.photo_service import CONTENT_TYPES

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{bucket}/{name}",
    response_class=FileResponse,
    responses={404: {"description": "No such object", "model": ErrorResponse}},
    summary="Serve a stored photo (local storage backend)",
)
async def serve_file(
    bucket: str,
    name: str,
    store: ObjectStore = Depends(get_object_store),
) -> FileResponse:
    if not isinstance(store, LocalObjectStore) or bucket != store.bucket:
        raise NotFoundError(resource="object", resource_id=f"{bucket}/{name}")

    # resolve() refuses names that escape the bucket directory
    path = store.resolve(name)
    if path is None:
        raise ValidationError(message="Invalid file path", field="name")
    if not path.is_file():
        raise NotFoundError(resource="object", resource_id=f"{bucket}/{name}")

    extension = path.suffix.lstrip(".").lower()
    return FileResponse(
        path=str(path),
        media_type=CONTENT_TYPES.get(extension, "application/octet-stream"),
        headers={
            "Cache-Control": "public, max-age=86400",
            # browsers must not second-guess the image type from the bytes
            "X-Content-Type-Options": "nosniff",
        },
    )
