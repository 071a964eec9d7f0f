# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import ClassVar

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ("FieldbindSettings", "settings")


class FieldbindSettings(BaseSettings, frozen=True):
    """Engine settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDBIND_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    UNKNOWN_ERROR_REASON: str = Field(
        default="unknown error",
        description="Reason stored on a field when its validation raised",
    )

    DIAGNOSTIC_LOG_LEVEL: int = Field(
        default=logging.DEBUG,
        description="Level used by LoggingSink for routine diagnostics",
    )

    CSS_DIRTY: str = "isDirty"
    CSS_VALID: str = "isValid"
    CSS_INVALID: str = "isInvalid"

    _instance: ClassVar["FieldbindSettings | None"] = None

    @field_validator("DIAGNOSTIC_LOG_LEVEL", mode="before")
    @classmethod
    def _parse_level(cls, v):
        if isinstance(v, str) and not v.strip().isdigit():
            level = logging.getLevelName(v.strip().upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {v}")
            return level
        return v


# Create a singleton instance
settings = FieldbindSettings()
FieldbindSettings._instance = settings
