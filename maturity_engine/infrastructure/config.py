"""
Centralized configuration management for the maturity scoring engine.

Settings are read from the environment (optionally a ``.env`` file) using
pydantic-settings, one section per concern.
"""

from __future__ import annotations

import json
import os
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """
    Where responses and computed priorities are stored.

    Example:
        >>> DatabaseConfig(backend="sqlite", sqlite_path="./test.db").get_connection_url()
        'sqlite:///./test.db'
    """

    backend: Literal["sqlite", "mysql"] = Field("sqlite", description="Store holding catalogs, responses and computed priorities")

    sqlite_path: str | None = Field("./maturity.db", description="SQLite database file path")

    mysql_host: str | None = Field("localhost", description="MySQL server hostname")
    mysql_port: int | None = Field(3306, ge=1, le=65535, description="MySQL server port")
    mysql_user: str | None = Field("root", description="MySQL account used by the engine")
    mysql_password: str | None = Field("", description="Password for the MySQL account")
    mysql_database: str | None = Field("maturity", description="MySQL database name")
    mysql_charset: str = Field("utf8mb4", description="Connection charset; utf8mb4 keeps rule text intact")

    pool_pre_ping: bool = Field(True, description="Test pooled connections before handing them out")
    pool_recycle: int = Field(3600, ge=60, description="Seconds before a pooled MySQL connection is replaced")
    echo: bool = Field(False, description="Echo emitted SQL through SQLAlchemy")

    model_config = SettingsConfigDict(env_prefix="DB_", case_sensitive=False)

    @field_validator("sqlite_path")
    @classmethod
    def validate_sqlite_path(cls, v: str | None) -> str | None:
        """Add a .db suffix to bare paths; leave in-memory databases alone."""
        if v and v != ":memory:":
            path = Path(v)
            if not path.suffix:
                v = str(path.with_suffix(".db"))
        return v

    @model_validator(mode="after")
    def validate_mysql_config(self) -> DatabaseConfig:
        if self.backend == "mysql":
            missing = [
                name
                for name in ("mysql_host", "mysql_user", "mysql_database")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"MySQL backend requires: {', '.join(missing)}")
        return self

    def get_connection_url(self) -> str:
        """
        Generate the SQLAlchemy connection URL.

        Raises:
            ValueError: If the backend is unsupported
        """
        if self.backend == "sqlite":
            return f"sqlite:///{self.sqlite_path}"
        elif self.backend == "mysql":
            password_part = f":{self.mysql_password}" if self.mysql_password else ""
            return (
                f"mysql+pymysql://{self.mysql_user}{password_part}@{self.mysql_host}:"
                f"{self.mysql_port}/{self.mysql_database}?charset={self.mysql_charset}"
            )
        raise ValueError(f"Unsupported database backend: {self.backend}")

    def get_engine_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"echo": self.echo, "pool_pre_ping": self.pool_pre_ping}
        if self.backend != "sqlite":
            options["pool_recycle"] = self.pool_recycle
        return options

    def ensure_sqlite_directory(self) -> None:
        if self.backend == "sqlite" and self.sqlite_path and self.sqlite_path != ":memory:":
            Path(self.sqlite_path).parent.mkdir(parents=True, exist_ok=True)


class LoggingConfig(BaseSettings):
    """Logging levels, output format and file destination."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Threshold for maturity_engine loggers"
    )
    file_path: str | None = Field(None, description="Rotating JSON log file; console only when unset")
    max_bytes: int = Field(10 * 1024 * 1024, ge=1024, description="Rotate the log file past this many bytes")
    backup_count: int = Field(5, ge=1, description="Rotated log files to keep")
    structured: bool = Field(True, description="JSON lines on the console instead of plain text")
    console_enabled: bool = Field(True, description="Write log records to stdout")

    model_config = SettingsConfigDict(env_prefix="LOG_", case_sensitive=False)


class ApplicationConfig(BaseSettings):
    """
    Service-level settings for the scoring API.

    Example:
        >>> config = get_settings()
        >>> config.app.environment
        'development'
    """

    environment: Literal["development", "testing", "production"] = Field(
        "development", description="Deployment stage; picks logging defaults"
    )
    debug: bool = Field(False, description="FastAPI debug mode and DEBUG logging")
    title: str = Field("Maturity Assessment Scoring", description="API title")
    version: str = Field("0.1.0", description="Version reported in the OpenAPI document")

    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(8000, ge=1, le=65535, description="Port for the HTTP server")
    reload: bool = Field(False, description="Enable uvicorn auto-reload")

    enable_exports: bool = Field(True, description="Enable results export endpoints")
    cors_origins: list[str] = Field(["*"], description="Origins allowed to call the JSON API")

    model_config = SettingsConfigDict(env_prefix="APP_", case_sensitive=False)

    @model_validator(mode="after")
    def debug_implies_development(self) -> ApplicationConfig:
        if self.debug and self.environment == "production":
            raise ValueError("debug must stay off when environment is production")
        return self


DEFAULT_LOG_LEVELS = {"development": "INFO", "testing": "INFO", "production": "WARNING"}


class Settings:
    """
    The engine's configuration, one section per concern, each read from the
    environment on first access.

    Example:
        >>> settings = get_settings()
        >>> settings.database.get_connection_url()
        'sqlite:///./maturity.db'
    """

    @cached_property
    def app(self) -> ApplicationConfig:
        return ApplicationConfig()

    @cached_property
    def database(self) -> DatabaseConfig:
        return DatabaseConfig()

    @cached_property
    def logging(self) -> LoggingConfig:
        # An explicit LOG_LEVEL wins; otherwise debug mode or the environment decides.
        if "LOG_LEVEL" in os.environ:
            return LoggingConfig()
        level = "DEBUG" if self.app.debug else DEFAULT_LOG_LEVELS[self.app.environment]
        return LoggingConfig(level=level)

    def is_development(self) -> bool:
        return self.app.environment == "development"

    def is_production(self) -> bool:
        return self.app.environment == "production"

    def is_testing(self) -> bool:
        return self.app.environment == "testing"

    def get_environment_info(self) -> dict[str, Any]:
        """What is running where, safe to log (no credentials)."""
        return {
            "environment": self.app.environment,
            "service": f"{self.app.title} {self.app.version}",
            "debug": self.app.debug,
            "store": self.database.backend,
            "log_level": self.logging.level,
            "features": {"exports": self.app.enable_exports},
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance (cached)."""
    return Settings()


def load_settings_from_file(file_path: str) -> Settings:
    """
    Load settings from a JSON file of ``{"section": {"key": value}}`` objects.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file format is unsupported
    """
    config_path = Path(file_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    if config_path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

    with open(config_path, encoding="utf-8") as f:
        config_data = json.load(f)

    for section, values in config_data.items():
        if isinstance(values, dict):
            for key, value in values.items():
                os.environ[f"{section.upper()}_{key.upper()}"] = str(value)

    get_settings.cache_clear()
    return get_settings()


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    get_settings.cache_clear()
