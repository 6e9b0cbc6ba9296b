"""Configuration management for the FitCheckr try-on service."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class IngestionConfig(BaseModel):
    """Image upload limits."""
    max_image_bytes: int = 10 * 1024 * 1024  # 10 MiB
    remote_fetch_timeout: float = 30.0


class OrchestratorConfig(BaseModel):
    """Client-side request lifecycle settings."""
    api_base_url: str = "http://127.0.0.1:8000"
    try_on_path: str = "/api/try-on"
    request_timeout_seconds: float = 30.0
    status_interval_seconds: float = 2.5


class StorageConfig(BaseModel):
    """Subscriber list persistence."""
    backend: Literal["memory", "kv", "blob"] = "memory"
    key: str = "fitcheckr:subscribers"
    blob_filename: str = "subscribers.json"
    blob_api_url: str = "https://blob.vercel-storage.com"


class ServerConfig(BaseModel):
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseSettings):
    """Main application configuration."""

    # Sub-configs
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # Gemini (loaded from .env)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-image-preview"

    # Vercel KV / Blob credentials
    kv_rest_api_url: str | None = None
    kv_rest_api_token: str | None = None
    blob_read_write_token: str | None = None

    admin_secret: str | None = None  # None = admin endpoints always reject
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = ""
        env_nested_delimiter = "__"
        extra = "ignore"


def load_config() -> AppConfig:
    """Load configuration from environment and defaults."""
    return AppConfig()
