"""Presigned multi-file upload handling."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from imagecache.core.exceptions import InvalidRequestError, InvalidUploadError
from imagecache.core.security import verify_presigned
from imagecache.modules.assets import AssetStore, StoredUpload

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadService:
    store: AssetStore
    secret_key: str
    clock: Callable[[], float] = time.time

    def authorize(self, key: Optional[str], expires: Optional[str], signature: Optional[str]) -> int:
        return verify_presigned(key, expires, signature, self.secret_key, now=self.clock())

    async def store_uploads(
        self,
        uploads: Sequence[UploadFile],
        *,
        key: Optional[str],
        expires: Optional[str],
        signature: Optional[str],
    ) -> list[StoredUpload]:
        """Authorize the request, then normalize and store every file in order.

        The first failing file aborts the rest of the batch.
        """
        self.authorize(key, expires, signature)
        if not uploads:
            raise InvalidRequestError("Attach at least one image")

        stored: list[StoredUpload] = []
        for upload in uploads:
            original_name = upload.filename or ""
            file_name = _sanitize_filename(original_name)
            if not file_name:
                raise InvalidUploadError("Uploaded file name is empty")
            try:
                data = await upload.read()
            finally:
                await upload.close()
            asset_id = await run_in_threadpool(self.store.save, file_name, data)
            stored.append(StoredUpload(original_name=original_name, filename=asset_id))

        logger.info("Upload for key %s stored %d image(s)", key, len(stored))
        return stored


def _sanitize_filename(filename: str | None) -> str | None:
    if not filename:
        return None
    name = os.path.basename(filename.replace("\\", "/"))
    return name.replace("\0", "").strip() or None
