"""
WordShelf Backend: Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads environment variables (or a .env file),
       validates types and ranges, and exposes a `settings` object.
Who:   Imported by `main.py` and by `services/catalog.py`, which builds the
       store and blob clients from it.
When:  Loaded once at import time; backend credentials are checked at startup.

Store connection credentials (database URL, Supabase URL and key, MongoDB
URL) are the only environment-driven behavior of the catalog. The clients
built from them are constructed explicitly by `build_catalog()` and handed
to the routes; nothing here opens a connection.
"""

from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults give a working local setup (SQLite file + local image folder).
    Hosted deployments override `STORE_BACKEND`, `BLOB_BACKEND` and the
    matching credentials.
    """

    # ── Record store ──────────────────────────────────────────────────────
    # sql:      relational tables through async SQLAlchemy
    # document: MongoDB collections through motor
    # rest:     hosted PostgREST / Supabase tables over HTTP
    store_backend: Literal["sql", "document", "rest"] = Field(default="sql")

    # Async SQLAlchemy URL, e.g. postgresql+asyncpg://user:pw@host:5432/wordshelf
    database_url: str = Field(
        default="sqlite+aiosqlite:///./wordshelf.db",
        description="Async SQLAlchemy connection URL",
    )
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=5, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)
    # Create the words/quotes tables on startup (Alembic manages them otherwise)
    db_create_tables: bool = Field(default=True)

    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="wordshelf")

    # Shared by the REST store and the Supabase blob storage
    supabase_url: str = Field(default="", description="Project URL, e.g. https://xyz.supabase.co")
    supabase_key: str = Field(default="", description="Project access key")

    # ── Image storage ─────────────────────────────────────────────────────
    blob_backend: Literal["local", "supabase"] = Field(default="local")

    # Root directory for locally stored images, relative to the backend CWD
    storage_root: str = Field(default="./storage")

    # Prefix of public URLs handed out for locally stored images
    public_base_url: str = Field(default="http://localhost:8000")

    word_image_bucket: str = Field(default="word-images")
    quote_image_bucket: str = Field(default="quote-images")

    # 10MB; range 1MB to 50MB
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # Transport timeout (seconds) for every outbound HTTP call
    http_timeout: float = Field(default=10.0, gt=0, le=120)

    # ── HTTP server ───────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:5173")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("supabase_url", "public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Base URLs are joined with '/path' segments later on."""
        return v.rstrip("/")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_backend(self) -> None:
        """
        What:  Checks that the credentials of the selected backends are present.
        When:  Called during app startup (lifespan).
        Raises ValueError listing every missing setting.
        """
        errors = []
        uses_supabase = self.store_backend == "rest" or self.blob_backend == "supabase"
        if uses_supabase and not self.supabase_url:
            errors.append("SUPABASE_URL is not set but a Supabase backend is selected.")
        if uses_supabase and not self.supabase_key:
            errors.append("SUPABASE_KEY is not set but a Supabase backend is selected.")
        if self.store_backend == "document" and not self.mongodb_url:
            errors.append("MONGODB_URL is not set but STORE_BACKEND=document.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
