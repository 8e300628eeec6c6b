"""Presigned upload URL signing and verification."""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Optional
from urllib.parse import urlencode

from imagecache.core.config import Settings
from imagecache.core.exceptions import (
    InvalidRequestError,
    PresignedUrlExpiredError,
    SignatureMismatchError,
)

logger = logging.getLogger(__name__)


def sign(key: str, expires: int | str, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``"<key>:<expires>"``."""
    message = f"{key}:{expires}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def create_presigned_query(
    key: str,
    settings: Settings,
    now: Optional[float] = None,
    expires_in: Optional[int] = None,
) -> dict[str, str]:
    issued_at = int(now if now is not None else time.time())
    expires = issued_at + (expires_in if expires_in is not None else settings.presigned_expiration)
    return {
        "key": key,
        "expires": str(expires),
        "signature": sign(key, expires, settings.secret_key),
    }


def build_upload_url(base_url: str, key: str, settings: Settings, now: Optional[float] = None) -> str:
    query = create_presigned_query(key, settings, now=now)
    return f"{base_url.rstrip('/')}/upload?{urlencode(query)}"


def verify_presigned(
    key: Optional[str],
    expires: Optional[str],
    signature: Optional[str],
    secret: str,
    now: Optional[float] = None,
) -> int:
    """Validate presigned query parameters and return the expiry timestamp.

    Raises:
        InvalidRequestError: a parameter is missing or ``expires`` is not an integer.
        SignatureMismatchError: the signature does not match.
        PresignedUrlExpiredError: the expiry lies in the past.
    """
    if not key or not expires or not signature:
        raise InvalidRequestError("key, expires and signature are required")
    try:
        expires_at = int(expires)
    except ValueError as exc:
        raise InvalidRequestError("expires must be a Unix timestamp") from exc

    expected = sign(key, expires, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected upload for key %s: signature mismatch", key)
        raise SignatureMismatchError("Invalid signature")

    current = now if now is not None else time.time()
    if current > expires_at:
        logger.warning("Rejected upload for key %s: presigned URL expired at %s", key, expires_at)
        raise PresignedUrlExpiredError("Presigned URL expired")
    return expires_at


__all__ = [
    "build_upload_url",
    "create_presigned_query",
    "sign",
    "verify_presigned",
]
