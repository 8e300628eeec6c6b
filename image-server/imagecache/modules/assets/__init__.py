"""Source asset storage exports."""

from .models import SourceAsset, StoredUpload
from .store import AssetStore

__all__ = [
    "AssetStore",
    "SourceAsset",
    "StoredUpload",
]
