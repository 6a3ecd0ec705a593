"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
No hardcoded values in code; all configuration comes from these sources.

Secrets (.env):
    SUPABASE_ANON_KEY

Settings (YAML):
    application.yaml   - App identity, timeouts
    backend.yaml       - Backend URL, service paths, storage buckets
    catalog.yaml       - Page size, upload limits, snapshot file
    logging.yaml       - Logging configuration
    resilience.yaml    - Retry and circuit breaker tuning
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notevault.core.config_schema import (
    ApplicationSchema,
    BackendSchema,
    CatalogSchema,
    LoggingSchema,
    ResilienceSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only keys and tokens."""

    supabase_anon_key: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    The validated settings files, one attribute per file.

    Loading fails on the first file that is missing or does not match its
    schema, so a half-configured client never starts.
    """

    application: ApplicationSchema
    backend: BackendSchema
    catalog: CatalogSchema
    logging: LoggingSchema
    resilience: ResilienceSchema

    _FILES = {
        "application": (ApplicationSchema, "application.yaml"),
        "backend": (BackendSchema, "backend.yaml"),
        "catalog": (CatalogSchema, "catalog.yaml"),
        "logging": (LoggingSchema, "logging.yaml"),
        "resilience": (ResilienceSchema, "resilience.yaml"),
    }

    def __init__(self) -> None:
        for name, (schema_cls, filename) in self._FILES.items():
            setattr(self, name, _load_validated(schema_cls, filename))


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_service_url(service: str, config: AppConfig | None = None) -> str:
    """
    Build the base URL of one backend service.

    Args:
        service: One of "rest", "auth", "storage".
        config: Configuration to read; the cached one if omitted.

    Returns:
        Absolute URL without trailing slash.
    """
    backend = (config or get_app_config()).backend
    paths = {
        "rest": backend.rest_path,
        "auth": backend.auth_path,
        "storage": backend.storage_path,
    }
    if service not in paths:
        raise ValueError(f"Unknown backend service: {service}")
    return backend.url.rstrip("/") + "/" + paths[service].strip("/")
