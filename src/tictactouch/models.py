"""Persisted player profile and preferences."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import Difficulty


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    NEON = "neon"
    RETRO = "retro"
    WATERCOLOR = "watercolor"


class PlayStyle(str, Enum):
    AGGRESSIVE = "aggressive"
    STRATEGIC = "strategic"
    LUCKY = "lucky"
    CHILL = "chill"


class PlayerProfile(BaseModel):
    """Who is playing. Filled in once by onboarding, editable afterwards."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", max_length=40)
    avatar: str = Field(default="🎯", max_length=8)
    play_style: PlayStyle = Field(default=PlayStyle.STRATEGIC, alias="playStyle")
    motto: str = Field(default="", max_length=120)
    favorite_theme: Theme = Field(default=Theme.DARK, alias="favoriteTheme")
    has_completed_onboarding: bool = Field(
        default=False, alias="hasCompletedOnboarding"
    )

    @field_validator("name", "motto")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        return value.strip()

    @property
    def display_name(self) -> str:
        return self.name or "Player"


class Preferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: Theme = Theme.DARK
    difficulty: Difficulty = Difficulty.MEDIUM
    sound_enabled: bool = Field(default=True, alias="soundEnabled")
