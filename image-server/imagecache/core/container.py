"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request

from imagecache.core.config import Settings, get_settings
from imagecache.modules.assets import AssetStore
from imagecache.modules.derivations import DerivationCache
from imagecache.modules.transform import TransformEngine
from imagecache.modules.uploads import UploadService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: TransformEngine
    asset_store: AssetStore
    derivations: DerivationCache
    uploads: UploadService

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApplicationContainer":
        extension = settings.image.extension
        engine = TransformEngine.from_settings(settings)
        asset_store = AssetStore(settings.asset_root, engine, extension=extension)
        derivations = DerivationCache(asset_store, engine, settings.cache_root, extension=extension)
        uploads = UploadService(asset_store, settings.secret_key)
        return cls(
            settings=settings,
            engine=engine,
            asset_store=asset_store,
            derivations=derivations,
            uploads=uploads,
        )

    def init_infrastructure(self) -> None:
        """Ensure the asset and cache roots exist."""
        self.asset_store.ensure_storage()
        self.derivations.ensure_storage()


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer.from_settings(get_settings())


def get_app_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


__all__ = ["ApplicationContainer", "get_app_container", "get_container"]
