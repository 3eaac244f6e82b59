"""
Message Store Backend - Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the database layer and the service layer.
When:  Loaded once at module import time.

Every value the process needs from the outside (listen address, Mongo
connection string, store timeout) lives here, so nothing is hard-coded in the
modules that use it.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development against a
    MongoDB instance on the default port.
    """

    # ── Document Store ────────────────────────────────────────────────────
    # Format: mongodb://[user:password@]host[:port][/?options]
    mongo_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    mongo_database: str = Field(default="Golang")
    mongo_collection: str = Field(default="messages")

    # What: Deadline applied to every single store round trip
    # Exceeding it cancels the call and surfaces as a 500 StoreError
    store_timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    # What: How long the driver waits to find a usable server before failing
    mongo_server_selection_timeout_ms: int = Field(default=5000, ge=100, le=60000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs (parsed by the property below)
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="localhost")
    backend_port: int = Field(default=8080, ge=1, le=65535)

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

    @field_validator("mongo_url")
    @classmethod
    def validate_mongo_url(cls, v: str) -> str:
        """Rejects connection strings the driver would refuse anyway."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MONGO_URL must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # MONGO_URL and mongo_url both work
    }


# Singleton instance, imported throughout the application
settings = Settings()
