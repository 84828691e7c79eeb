"""
WordShelf Backend: Record Route Factory
========================================

What:  Builds the list / detail / create / update / delete routes for one
       record kind.
How:   Each request acts as one page instance: it builds a view state
       controller, mounts it (which runs the page fetch), applies the
       submitted action and renders the resulting state as JSON. A page
       that ends up Failed is rendered through the global exception
       handlers (404 not found, 503 store unavailable).

Forms:
    POST and PATCH take multipart/form-data (or urlencoded) bodies: the
    record's text fields plus an optional `image` file part. A file wins
    over a typed `image_url`.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.datastructures import FormData, UploadFile

from wordshelf.controllers.view_state import (
    Failed,
    ImageUpload,
    SubmitOutcome,
    ViewStateController,
    detail_page,
    list_page,
)
from wordshelf.exceptions import StoreUnavailable, WordShelfError
from wordshelf.schemas.api import (
    DeleteResponse,
    DetailView,
    ErrorResponse,
    ListView,
    MutationResponse,
)
from wordshelf.schemas.kinds import RecordKind
from wordshelf.services.catalog import Catalog, get_catalog

logger = logging.getLogger(__name__)


async def read_image(form: FormData) -> Optional[ImageUpload]:
    """The `image` file part, or None when no file was picked."""
    upload = form.get("image")
    # An empty file input still sends a part, with no file name
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    content = await upload.read()
    return ImageUpload(content=content, filename=upload.filename)


def rendered_data(page: ViewStateController) -> Any:
    """Data of a Ready page; a Failed page raises its error."""
    state = page.current_state()
    if isinstance(state, Failed):
        raise state.error or StoreUnavailable(message=state.message)
    return state.data


def raise_for_outcome(outcome: SubmitOutcome) -> None:
    if not outcome.ok and outcome.error is not None:
        raise outcome.error
    if not outcome.ok:
        raise WordShelfError(message=outcome.message or "The request could not be completed.")


def build_record_router(kind: RecordKind) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.plural}", tags=[kind.label + "s"])
    record_model = kind.record_model
    error_responses = {
        503: {"description": "Store unavailable", "model": ErrorResponse},
    }

    @router.get(
        "",
        response_model=ListView[record_model],
        responses=error_responses,
        summary=f"List {kind.plural}, newest first",
    )
    async def list_records(catalog: Catalog = Depends(get_catalog)):
        page = list_page(catalog.store_for(kind))
        await page.mount()
        items = rendered_data(page)
        return {"state": page.current_state().name, "items": items, "count": len(items)}

    @router.get(
        "/{record_id}",
        response_model=DetailView[record_model],
        responses={404: {"description": f"{kind.label} not found", "model": ErrorResponse}, **error_responses},
        summary=f"Get one {kind.name}",
    )
    async def get_record(record_id: str, catalog: Catalog = Depends(get_catalog)):
        page = detail_page(catalog.store_for(kind), record_id)
        await page.mount()
        item = rendered_data(page)
        return {"state": page.current_state().name, "item": item}

    @router.post(
        "",
        status_code=201,
        response_model=MutationResponse,
        responses={
            400: {"description": "Invalid form", "model": ErrorResponse},
            502: {"description": "Image upload failed", "model": ErrorResponse},
            **error_responses,
        },
        summary=f"Add a {kind.name}",
    )
    async def create_record(request: Request, catalog: Catalog = Depends(get_catalog)):
        form = await request.form()
        image = await read_image(form)
        page = list_page(catalog.store_for(kind), catalog.uploader_for(kind))
        await page.mount()
        rendered_data(page)
        outcome = await page.submit_create(form, image)
        raise_for_outcome(outcome)
        return MutationResponse(id=outcome.record_id, message=outcome.message)

    @router.patch(
        "/{record_id}",
        response_model=MutationResponse,
        responses={
            400: {"description": "Invalid form", "model": ErrorResponse},
            404: {"description": f"{kind.label} not found", "model": ErrorResponse},
            502: {"description": "Image upload failed", "model": ErrorResponse},
            **error_responses,
        },
        summary=f"Edit a {kind.name}; omitted fields keep their value",
    )
    async def update_record(
        record_id: str,
        request: Request,
        catalog: Catalog = Depends(get_catalog),
    ):
        form = await request.form()
        image = await read_image(form)
        page = detail_page(catalog.store_for(kind), record_id, catalog.uploader_for(kind))
        await page.mount()
        rendered_data(page)
        outcome = await page.submit_update(record_id, form, image)
        raise_for_outcome(outcome)
        return MutationResponse(id=outcome.record_id, message=outcome.message)

    @router.delete(
        "/{record_id}",
        response_model=DeleteResponse,
        responses=error_responses,
        summary=f"Delete a {kind.name} (requires confirm=true)",
    )
    async def delete_record(
        record_id: str,
        response: Response,
        confirm: bool = Query(default=False, description="Must be true to delete"),
        catalog: Catalog = Depends(get_catalog),
    ):
        page = list_page(catalog.store_for(kind), confirm=lambda question: confirm)
        await page.mount()
        rendered_data(page)
        outcome = await page.submit_delete(record_id)
        if outcome.cancelled:
            return DeleteResponse(
                deleted=False,
                message="Delete was not confirmed. Nothing was deleted.",
            )
        raise_for_outcome(outcome)
        response.headers["Cache-Control"] = "no-store"
        return DeleteResponse(deleted=True, message=outcome.message)

    return router
