"""
WordShelf Backend: Image File Route
====================================

What:  Serves images written by LocalBlobStorage at GET /files/{path}.
Who:   Requested by <img> tags using a record's image_url.

Security:
    - The path is resolved inside STORAGE_ROOT; `../` escapes are rejected
    - Only existing regular files are served
    - With BLOB_BACKEND=supabase nothing is served here (images live in the
      bucket's public URL)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from wordshelf.exceptions import NotFound
from wordshelf.services.catalog import Catalog, get_catalog

router = APIRouter(tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a stored image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str, catalog: Catalog = Depends(get_catalog)) -> FileResponse:
    storage = catalog.local_storage
    if storage is None:
        raise NotFound(resource="file", resource_id=file_path)

    full_path = storage.resolve(file_path)
    if not full_path.is_file():
        raise NotFound(resource="file", resource_id=file_path)

    # Stored images are never overwritten, so they can be cached for a day
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
