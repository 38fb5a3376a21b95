"""
Configuration management for Forge Tycoon.
Uses pydantic-settings for environment variable parsing.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./forge_tycoon.db",
        description="SQLAlchemy async connection URL for the save store"
    )

    # Debug
    debug_mode: bool = Field(
        default=False,
        description="Echo SQL and enable debug-only endpoints"
    )

    # Tick Engine
    tick_rate_ms: int = Field(
        default=1000,
        description="Tick rate in milliseconds (one simulation tick per period)"
    )

    # Simulation
    time_multiplier: float = Field(
        default=60.0,
        description="Game minutes that pass per real second"
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for the simulation RNG. None means nondeterministic"
    )

    # Persistence
    autosave_enabled: bool = Field(
        default=True,
        description="Periodically write the game into the autosave slot"
    )
    autosave_interval_seconds: int = Field(
        default=60,
        description="Interval between autosaves. Values below 30 are raised to 30"
    )
    autosave_slot: str = Field(
        default="auto",
        description="Reserved slot name used for autosaves"
    )
    save_version: str = Field(
        default="1.0.0",
        description="Schema version written into every save's meta block"
    )
    load_autosave_on_start: bool = Field(
        default=True,
        description="Restore the autosave slot when the server starts"
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use dependency injection in FastAPI routes.
    """
    return Settings()
