"""Lazily computed, durably cached resized renditions of source images.

Layout mirrors the asset root::

    cache_root/
      └─ <relative dir of source>/
          └─ <stem>_<width>.webp

A rendition is written once and never recomputed. Source changes are not
detected: the cache key carries no fingerprint of the source content.
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, Optional

from imagecache.core.exceptions import CacheWriteError
from imagecache.modules.assets import AssetStore
from imagecache.modules.transform import TransformEngine

from .models import DerivedImage

logger = logging.getLogger(__name__)


def parse_width(raw: Optional[str]) -> Optional[int]:
    """Interpret a client-supplied width; anything but a positive integer means none."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    width = int(text)
    return width if width > 0 else None


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class DerivationCache:
    """Maps ``(source id, width)`` to a cached rendition, computing it on a miss."""

    def __init__(
        self,
        store: AssetStore,
        engine: TransformEngine,
        cache_root: Path,
        extension: str = ".webp",
    ) -> None:
        self._store = store
        self._engine = engine
        self._root = Path(cache_root).resolve()
        self._extension = extension.lower()
        self._guard = threading.Lock()
        self._in_flight: Dict[Path, _KeyLock] = {}
        self._counters = {
            "originals": 0,
            "hits": 0,
            "misses": 0,
            "writes": 0,
            "lost_races": 0,
        }

    @property
    def root(self) -> Path:
        return self._root

    def ensure_storage(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    # -------- public API --------

    def derived_path(self, source_id: str, width: int) -> Path:
        relative = PurePosixPath(source_id)
        return self._root.joinpath(*relative.parent.parts, f"{relative.stem}_{width}{self._extension}")

    def get_or_create(self, source_id: str, requested_width: Optional[int]) -> DerivedImage:
        source = self._store.source(source_id)
        intrinsic = self._engine.probe_width(source.path)

        if requested_width is None or requested_width >= intrinsic:
            self._count("originals")
            return DerivedImage(source_id=source.id, path=source.path, width=intrinsic, is_original=True)

        target = self.derived_path(source.id, requested_width)
        if target.is_file():
            self._count("hits")
            logger.debug("Cache hit for %s at width %d", source.id, requested_width)
            return DerivedImage(source_id=source.id, path=target, width=requested_width, is_original=False)

        with self._key_lock(target):
            if target.is_file():
                self._count("hits")
            else:
                self._count("misses")
                logger.info("Cache miss for %s at width %d; rendering", source.id, requested_width)
                data = self._store.read(source.id)
                rendered = self._engine.resize(data, requested_width)
                self._publish(target, rendered, source.id)
        return DerivedImage(source_id=source.id, path=target, width=requested_width, is_original=False)

    def stats(self) -> Dict[str, int]:
        with self._guard:
            payload = dict(self._counters)
            payload["in_flight"] = len(self._in_flight)
        return payload

    # -------- internals --------

    @contextmanager
    def _key_lock(self, target: Path) -> Iterator[None]:
        with self._guard:
            entry = self._in_flight.get(target)
            if entry is None:
                entry = self._in_flight[target] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._in_flight[target]

    def _publish(self, target: Path, data: bytes, source_id: str) -> None:
        """Move rendered bytes into place without ever exposing a partial file."""
        temp_path = target.with_name(f".{target.name}.{os.getpid()}.{os.urandom(8).hex()}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("wb") as buffer:
                buffer.write(data)
                buffer.flush()
                os.fsync(buffer.fileno())
            try:
                os.link(temp_path, target)
            except FileExistsError:
                self._count("lost_races")
                logger.info("Rendition %s already published by another writer", target.name)
                return
            except OSError:
                # Filesystem without hard links: fall back to an atomic replace.
                if target.exists():
                    self._count("lost_races")
                    return
                os.replace(temp_path, target)
            self._count("writes")
            logger.info("Cached rendition %s for %s", target.name, source_id)
        except OSError as exc:
            logger.error("Failed to cache rendition for %s", source_id, exc_info=True)
            raise CacheWriteError(f"Failed to cache resized image for {source_id}") from exc
        finally:
            temp_path.unlink(missing_ok=True)

    def _count(self, name: str) -> None:
        with self._guard:
            self._counters[name] += 1


__all__ = ["DerivationCache", "parse_width"]
