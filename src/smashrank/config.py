"""
Configuration management for SmashRank.

Uses Pydantic Settings to load configuration from environment variables
(prefixed with ``SMASHRANK_``) with defaults matching the production
groups. The core never reads settings implicitly inside a calculation:
callers turn them into ``EloParams`` once and pass those around.

Usage:
    from smashrank.config import get_settings
    print(get_settings().initial_rating)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMASHRANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Rating Configuration
    # ==========================================================================

    # Declared before initial_rating so the validator below can see it
    elo_floor: int = Field(
        default=100,
        description="No rating is ever allowed below this value",
    )
    initial_rating: int = Field(
        default=1200,
        description="Baseline rating for new group members and after season reset",
    )

    # ==========================================================================
    # Group Defaults
    # ==========================================================================

    achievements_enabled_by_default: bool = Field(
        default=True,
        description="Whether new groups evaluate achievements after each match",
    )
    tournament_max_players: int = Field(
        default=12,
        description="Default participant cap for a round-robin tournament",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="Format string passed to logging.basicConfig by scripts",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("initial_rating")
    @classmethod
    def validate_initial_rating(cls, v: int, info) -> int:
        """The baseline has to sit on or above the floor."""
        floor = info.data.get("elo_floor", 100)
        if v < floor:
            raise ValueError(f"initial_rating must be >= elo_floor ({floor})")
        return v

    @field_validator("tournament_max_players")
    @classmethod
    def validate_tournament_max_players(cls, v: int) -> int:
        if v < 2:
            raise ValueError("tournament_max_players must be at least 2")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once per process.
    Tests call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
