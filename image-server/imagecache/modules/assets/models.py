"""Domain models for source images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class SourceAsset:
    id: str
    path: Path


@dataclass(frozen=True, slots=True)
class StoredUpload:
    original_name: str
    filename: str
