"""Domain models for derived images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DerivedImage:
    """Location of the bytes served for a ``(source, width)`` request."""

    source_id: str
    path: Path
    width: int
    is_original: bool
