"""Pillow-backed image transforms.

Every operation takes raw bytes and returns bytes encoded in the configured
output format, so the engine never touches storage and can run in any worker
thread.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from imagecache.core.exceptions import ImageDecodeError, ImageEncodeError, InvalidDimensionError

ImageSource = Union[bytes, Path]


class TransformEngine:
    """Stateless resize/convert operations with a fixed output encoding."""

    def __init__(self, output_format: str = "WEBP", quality: int = 80, method: int = 4) -> None:
        self.output_format = output_format.upper()
        self.quality = quality
        self.method = method

    @classmethod
    def from_settings(cls, settings) -> "TransformEngine":
        image = settings.image
        return cls(output_format=image.output_format, quality=image.quality, method=image.method)

    def probe_width(self, source: ImageSource) -> int:
        """Return the intrinsic width, reading only the image header."""
        try:
            with _open(source) as img:
                return int(img.width)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise ImageDecodeError("Source is not a decodable image") from exc

    def resize(self, data: bytes, width: int) -> bytes:
        """Scale ``data`` to ``width`` pixels wide, keeping the aspect ratio."""
        if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
            raise InvalidDimensionError(f"Target width must be a positive integer, got {width!r}")
        img = self._decode(data)
        height = max(1, round(img.height * width / img.width))
        resized = img.resize((width, height), Image.LANCZOS)
        return self._encode(resized)

    def convert(self, data: bytes) -> bytes:
        """Re-encode ``data`` in the output format at its original size."""
        return self._encode(self._decode(data))

    def _decode(self, data: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise ImageDecodeError("Source is not a decodable image") from exc
        if img.mode in ("RGB", "RGBA"):
            return img
        if img.mode in ("P", "LA", "PA") or "transparency" in img.info:
            return img.convert("RGBA")
        return img.convert("RGB")

    def _encode(self, img: Image.Image) -> bytes:
        buffer = BytesIO()
        try:
            img.save(buffer, format=self.output_format, quality=self.quality, method=self.method)
        except (OSError, ValueError, KeyError) as exc:
            raise ImageEncodeError(f"Failed to encode image as {self.output_format}") from exc
        return buffer.getvalue()


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        return Image.open(BytesIO(source))
    return Image.open(source)


__all__ = ["ImageSource", "TransformEngine"]
