"""Filesystem storage for uploaded source images."""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

from imagecache.core.exceptions import (
    AssetNotFoundError,
    AssetWriteError,
    InvalidAssetPathError,
    InvalidUploadError,
    ProcessingError,
)
from imagecache.modules.transform import TransformEngine

from .models import SourceAsset

logger = logging.getLogger(__name__)


class AssetStore:
    """Stores originals under a fixed root, normalized to one output format.

    Asset ids are relative POSIX paths. Every id is resolved against the root
    before use and rejected if the result would land outside it.
    """

    def __init__(self, root: Path, engine: TransformEngine, extension: str = ".webp") -> None:
        self._root = Path(root).resolve()
        self._engine = engine
        self._extension = extension.lower()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    def ensure_storage(self) -> None:
        """Create the storage directory if it does not exist."""
        self._root.mkdir(parents=True, exist_ok=True)

    def resolve(self, asset_id: str) -> Path:
        if not asset_id or "\0" in asset_id:
            raise InvalidAssetPathError("Invalid image path")
        relative = PurePosixPath(asset_id)
        if relative.is_absolute():
            raise InvalidAssetPathError("Image path must be relative")
        target = (self._root / relative).resolve()
        if target == self._root or not target.is_relative_to(self._root):
            raise InvalidAssetPathError("Image path escapes the storage root")
        return target

    def relative_id(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    def exists(self, asset_id: str) -> bool:
        return self.resolve(asset_id).is_file()

    def source(self, asset_id: str) -> SourceAsset:
        path = self.resolve(asset_id)
        if not path.is_file():
            raise AssetNotFoundError(f"Image not found: {asset_id}")
        return SourceAsset(id=self.relative_id(path), path=path)

    def read(self, asset_id: str) -> bytes:
        asset = self.source(asset_id)
        try:
            return asset.path.read_bytes()
        except FileNotFoundError as exc:
            raise AssetNotFoundError(f"Image not found: {asset_id}") from exc
        except OSError as exc:
            raise ProcessingError(f"Failed to read image: {asset_id}") from exc

    def save(self, name: str, data: bytes) -> str:
        """Persist an upload under ``name`` and return its asset id.

        Content whose name does not already carry the output extension is
        re-encoded first and stored under the swapped extension.
        """
        if not data:
            raise InvalidUploadError(f"Uploaded file is empty: {name}")
        relative = PurePosixPath(name)
        if not relative.name or relative.name in {".", ".."}:
            raise InvalidUploadError("Uploaded file name is empty")

        if relative.suffix.lower() == self._extension:
            self._engine.probe_width(data)
            payload = data
        else:
            payload = self._engine.convert(data)
            relative = relative.with_suffix(self._extension)

        target = self.resolve(relative.as_posix())
        temp_path = target.with_name(f".{target.name}.{os.urandom(8).hex()}.upload")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("wb") as buffer:
                buffer.write(payload)
                buffer.flush()
                os.fsync(buffer.fileno())
            temp_path.replace(target)
        except OSError as exc:
            raise AssetWriteError(f"Failed to store image: {relative.as_posix()}") from exc
        finally:
            temp_path.unlink(missing_ok=True)

        asset_id = self.relative_id(target)
        logger.info("Stored source image %s (%d bytes)", asset_id, len(payload))
        return asset_id


__all__ = ["AssetStore"]
