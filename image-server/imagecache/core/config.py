"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class StorageSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset_dir: Path = Field(default=Path("storage/uploads"))
    cache_dir: Path = Field(default=Path("storage/cache"))


class SecuritySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    secret_key: str = Field(default="default-secret", min_length=1)
    # Default validity window of issued presigned upload URLs, in seconds.
    presigned_expiration: int = Field(default=300, gt=0)


class ImageSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    output_format: str = "WEBP"
    extension: str = ".webp"
    quality: int = Field(default=80, ge=1, le=100)
    method: int = Field(default=4, ge=0, le=6)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    json_output: bool = False


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Image Resize Server"

    server: ServerSettings = ServerSettings()
    storage: StorageSettings = StorageSettings()
    security: SecuritySettings = SecuritySettings()
    image: ImageSettings = ImageSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def asset_root(self) -> Path:
        return self.storage.asset_dir.resolve()

    @property
    def cache_root(self) -> Path:
        return self.storage.cache_dir.resolve()

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def presigned_expiration(self) -> int:
        return self.security.presigned_expiration


@lru_cache()
def get_settings() -> Settings:
    return Settings()
