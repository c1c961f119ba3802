from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Pydantic Settings automatically reads env vars matching field names (case-insensitive).
    In development, it also reads from .env file if present.
    In production, set environment variables directly (Docker, k8s, etc.).
    """

    app_name: str = "apikit"
    app_env: str = "production"

    # Error rendering and logging
    display_error_details: bool = False  # Expose fault messages in 500 responses
    log_errors: bool = True  # Log unhandled faults at all
    log_error_details: bool = True  # Include the traceback when logging faults

    # JSON Schema validation
    # Layout: <schema_folder>/RequestBody/<Name>.json, <schema_folder>/QueryParameters/<Name>.json
    schema_folder: Path = Path("schemas")
    schema_prefix: str | None = None  # URI prefix that $ref can use to address schema_folder

    # CORS and caching headers
    cors_enabled: bool = False
    cors_allow_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    no_cache: bool = False

    trailing_slash_redirect: bool = False  # 301 instead of rewriting /path/ to /path

    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env in development
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )
