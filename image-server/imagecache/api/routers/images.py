"""Resized image delivery backed by the derivation cache."""

import mimetypes
from typing import Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from imagecache.core.container import ApplicationContainer, get_app_container
from imagecache.modules.derivations import parse_width
from imagecache.schemas import ERROR_RESPONSES

router = APIRouter()

DERIVED_CACHE_CONTROL = "public, max-age=31536000, immutable"

mimetypes.add_type("image/webp", ".webp")


@router.get(
    "/images/{source:path}",
    response_class=FileResponse,
    responses=ERROR_RESPONSES,
    summary="Serve an image, resized on demand",
)
async def get_image(
    source: str,
    width: Optional[str] = Query(None),
    container: ApplicationContainer = Depends(get_app_container),
):
    # Worker threads are not cancelled on client disconnect, so a started
    # rendition always finishes and lands in the cache.
    result = await run_in_threadpool(
        container.derivations.get_or_create,
        unquote(source),
        parse_width(width),
    )
    headers = {"X-Image-Variant": "original" if result.is_original else "derived"}
    if not result.is_original:
        headers["Cache-Control"] = DERIVED_CACHE_CONTROL
    return FileResponse(path=result.path, headers=headers)
