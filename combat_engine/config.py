"""Configuration management for the combat engine.

This module provides typed configuration loading from environment variables
using pydantic-settings. Every setting can be overridden with a
``COMBAT_``-prefixed environment variable or a .env file.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AbilitySelection = Literal["best_physical", "per_weapon"]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    The .env file should be in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    dice_seed: Optional[int] = Field(
        default=None,
        description="Seed for the default dice engine (unset = nondeterministic)",
    )
    ability_selection: AbilitySelection = Field(
        default="best_physical",
        description=(
            "How weapon attacks pick an ability: 'best_physical' always takes the "
            "better of STR/DEX, 'per_weapon' uses the weapon's ability and finesse"
        ),
    )
    minimum_damage: int = Field(
        default=1,
        ge=0,
        description="Floor applied to the total of a damage roll",
    )
    strict_end_combat: bool = Field(
        default=False,
        description="Raise instead of no-op when ending combat while idle",
    )
    log_level: str = Field(default="INFO", description="Logging level for the CLI")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and make sure logging knows it."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def uses_weapon_ability(self) -> bool:
        """Check if weapon attacks should honor per-weapon ability/finesse."""
        return self.ability_selection == "per_weapon"


@lru_cache
def get_settings() -> Settings:
    """Get cached engine settings.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
