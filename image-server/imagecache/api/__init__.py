from fastapi import APIRouter

from imagecache.api.routers import health, images, uploads


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(uploads.router, tags=["uploads"])
    router.include_router(images.router, tags=["images"])
    router.include_router(health.router, tags=["health"])
    return router


__all__ = [
    "create_api_router",
]
