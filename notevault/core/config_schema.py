"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    BackendSchema      → backend.yaml
    CatalogSchema      → catalog.yaml
    LoggingSchema      → logging.yaml
    ResilienceSchema   → resilience.yaml
"""

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class TimeoutsSchema(_StrictBase):
    row_store: float
    storage: float
    auth: float


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    timeouts: TimeoutsSchema
    session_path: str | None = None


# =============================================================================
# backend.yaml
# =============================================================================


class BucketsSchema(_StrictBase):
    notes: str
    contributions: str


class BackendSchema(_StrictBase):
    url: str
    rest_path: str
    auth_path: str
    storage_path: str
    site_url: str
    buckets: BucketsSchema


# =============================================================================
# catalog.yaml
# =============================================================================


class CatalogSchema(_StrictBase):
    page_size: int = Field(ge=1)
    recent_requests_limit: int = Field(ge=1)
    max_upload_bytes: int = Field(ge=1)
    snapshot_path: str | None = None


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# resilience.yaml
# =============================================================================


class RetrySchema(_StrictBase):
    attempts: int = Field(ge=1)
    wait_min: float
    wait_max: float


class CircuitBreakerSchema(_StrictBase):
    fail_max: int = Field(ge=1)
    timeout_duration: int


class ResilienceSchema(_StrictBase):
    retry: RetrySchema
    circuit_breaker: CircuitBreakerSchema
