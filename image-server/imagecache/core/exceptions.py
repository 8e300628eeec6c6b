"""Service-wide exception hierarchy.

Each error carries the HTTP status and machine-readable code it is reported
with, so routers can raise domain errors and let the application-level
handlers shape the response.
"""


class ImageServiceError(Exception):
    """Base class for all errors surfaced by the image service."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class InvalidRequestError(ImageServiceError):
    """Request parameters are missing or malformed."""

    status_code = 400
    code = "invalid_request"


class InvalidAssetPathError(InvalidRequestError):
    """Asset path escapes the storage root or is otherwise unusable."""

    code = "invalid_path"


class InvalidUploadError(InvalidRequestError):
    """Uploaded file is empty or has an unusable name."""

    code = "invalid_upload"


class InvalidDimensionError(InvalidRequestError):
    """Requested target width is not a positive integer."""

    code = "invalid_dimension"


class UnauthorizedError(ImageServiceError):
    """Presigned authorization was rejected."""

    status_code = 403
    code = "unauthorized"


class SignatureMismatchError(UnauthorizedError):
    """Presigned URL signature does not match."""

    code = "invalid_signature"


class PresignedUrlExpiredError(UnauthorizedError):
    """Presigned URL has expired."""

    code = "expired"


class NotFoundError(ImageServiceError):
    """Requested resource does not exist."""

    status_code = 404
    code = "not_found"


class AssetNotFoundError(NotFoundError):
    """Source image does not exist."""

    code = "asset_not_found"


class ProcessingError(ImageServiceError):
    """Image decoding, encoding or storage failed."""

    code = "processing_failed"


class ImageDecodeError(ProcessingError):
    """Input bytes are not a decodable image."""


class ImageEncodeError(ProcessingError):
    """Encoding the output image failed."""


class AssetWriteError(ProcessingError):
    """Persisting a source image failed."""


class CacheWriteError(ProcessingError):
    """Persisting a derived image failed."""


__all__ = [
    "ImageServiceError",
    "InvalidRequestError",
    "InvalidAssetPathError",
    "InvalidUploadError",
    "InvalidDimensionError",
    "UnauthorizedError",
    "SignatureMismatchError",
    "PresignedUrlExpiredError",
    "NotFoundError",
    "AssetNotFoundError",
    "ProcessingError",
    "ImageDecodeError",
    "ImageEncodeError",
    "AssetWriteError",
    "CacheWriteError",
]
