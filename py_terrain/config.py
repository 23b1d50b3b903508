"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TERRAIN_",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    # Generation Configuration
    default_seed: Optional[int] = Field(
        default=None, description="Seed used when a generation call passes none"
    )
    max_cells: int = Field(default=200_000, description="Maximum cells_desired per world")


settings = Settings()
