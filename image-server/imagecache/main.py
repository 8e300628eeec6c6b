import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from imagecache import __version__
from imagecache.api import create_api_router
from imagecache.core.container import ApplicationContainer, get_container
from imagecache.core.exceptions import ImageServiceError
from imagecache.core.logging import setup_logging

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "invalid_request",
    403: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.container
    container.init_infrastructure()
    logger.info(
        "Serving images from %s (%s environment)",
        container.settings.storage.asset_dir,
        container.settings.environment,
    )
    yield


async def handle_service_error(request: Request, exc: ImageServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse({"error": exc.code, "detail": exc.message}, status_code=exc.status_code)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "internal_error" if exc.status_code >= 500 else "http_error")
    return JSONResponse(
        {"error": code, "detail": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}" for error in errors
    )
    return JSONResponse({"error": "invalid_request", "detail": detail or "Invalid request"}, status_code=400)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "internal_error", "detail": "Internal server error"}, status_code=500)


def create_app(container: Optional[ApplicationContainer] = None) -> FastAPI:
    container = container or get_container()
    settings = container.settings
    setup_logging(settings.logging.level, settings.logging.json_output)

    app = FastAPI(
        title=settings.project_name,
        description="Image upload, on-demand resizing and rendition cache",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ImageServiceError, handle_service_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(create_api_router())
    return app


app = create_app()
