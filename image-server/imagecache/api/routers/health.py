"""Liveness and cache statistics."""

from fastapi import APIRouter, Depends

from imagecache import __version__
from imagecache.core.container import ApplicationContainer, get_app_container

router = APIRouter()


@router.get("/health", summary="Service status and cache counters")
async def health(container: ApplicationContainer = Depends(get_app_container)):
    return {
        "status": "ok",
        "version": __version__,
        "cache": container.derivations.stats(),
    }
