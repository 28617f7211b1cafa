"""Configuration management for pgstruct."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.pgstruct/.env
    3. Package directory (where this file is located)
    """
    # Current directory
    if os.path.exists(".env"):
        return ".env"

    # User config directory
    user_env = Path.home() / ".pgstruct" / ".env"
    if user_env.exists():
        return str(user_env)

    # Package directory
    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # PostgreSQL connection, named after the libpq environment variables
    pghost: str = Field(
        default="localhost",
        description="PostgreSQL server host"
    )
    pgport: int = Field(
        default=5432,
        description="PostgreSQL server port"
    )
    pgdatabase: Optional[str] = Field(
        default=None,
        description="Database to introspect"
    )
    pguser: Optional[str] = Field(
        default=None,
        description="User to connect as"
    )
    pgpassword: Optional[str] = Field(
        default=None,
        description="Password for the connecting user"
    )

    # Generation defaults
    pgstruct_package: str = Field(
        default="main",
        description="Go package name written to generated files"
    )
    pgstruct_output_dir: Optional[str] = Field(
        default=None,
        description="Directory for generated files (default: the package name)"
    )
    pgstruct_nullability: str = Field(
        default="plain",
        description="Field nullability policy: plain or nullable"
    )
    pgstruct_accessors: bool = Field(
        default=True,
        description="Generate List accessors and function wrappers"
    )

    # CLI run logging configuration
    cli_logging_enabled: bool = Field(
        default=True,
        description="Enable database logging for CLI command runs"
    )
    cli_logging_db_path: Optional[str] = Field(
        default=None,
        description="Path to CLI runs database file (default: ~/.pgstruct/cli_runs.db)"
    )
    cli_logging_retention_days: int = Field(
        default=30,
        description="Number of days to retain CLI run log entries"
    )

    @field_validator("pgstruct_nullability")
    @classmethod
    def _check_nullability(cls, value: str) -> str:
        value = value.lower()
        if value not in ("plain", "nullable"):
            raise ValueError("pgstruct_nullability must be 'plain' or 'nullable'")
        return value

    class Config:
        env_file = _find_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
