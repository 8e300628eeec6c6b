"""Presigned image upload endpoint."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from imagecache.core.container import ApplicationContainer, get_app_container
from imagecache.schemas import ERROR_RESPONSES, UploadedFile, UploadResponse

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses=ERROR_RESPONSES,
    summary="Upload images through a presigned URL",
)
async def upload_images(
    key: Optional[str] = Query(None),
    expires: Optional[str] = Query(None),
    signature: Optional[str] = Query(None),
    images: Optional[List[UploadFile]] = File(None),
    container: ApplicationContainer = Depends(get_app_container),
) -> UploadResponse:
    stored = await container.uploads.store_uploads(
        images or [],
        key=key,
        expires=expires,
        signature=signature,
    )
    return UploadResponse(
        message="uploaded",
        files=[UploadedFile(originalName=item.original_name, filename=item.filename) for item in stored],
    )
