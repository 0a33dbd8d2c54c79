"""
Configuration Management for FinBoard

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

import re
from datetime import time, timezone
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BoardSettings(BaseSettings):
    """Board behaviour: default lists, currency display, installment schedule."""

    model_config = SettingsConfigDict(
        env_prefix="FINBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Lists seeded when the board falls back to local mode with no lists
    default_list_titles: str = Field(
        default="Investment 1,Investment 2,Investment 3",
        description="Comma-separated titles of the lists seeded in fallback mode"
    )

    # Display
    currency_symbol: str = Field(
        default="R$",
        max_length=5,
        description="Currency symbol placed before formatted amounts"
    )
    decimal_separator: str = Field(
        default=",",
        min_length=1,
        max_length=1,
        description="Decimal separator used when formatting amounts"
    )
    thousands_separator: str = Field(
        default=".",
        max_length=1,
        description="Thousands separator used when formatting amounts"
    )

    # Installments
    installment_day_of_month: int = Field(
        default=10,
        ge=1,
        le=31,
        description="Default day of month for generated installments"
    )
    installment_hour_utc: int = Field(
        default=12,
        ge=0,
        le=23,
        description="Hour (UTC) assigned to generated installments"
    )
    installment_minute_utc: int = Field(
        default=0,
        ge=0,
        le=59,
        description="Minute (UTC) assigned to generated installments"
    )

    @field_validator('default_list_titles')
    @classmethod
    def validate_default_list_titles(cls, v: str) -> str:
        """At least one non-blank title is required."""
        if not [title for title in v.split(",") if title.strip()]:
            raise ValueError("default_list_titles must name at least one list")
        return v

    @property
    def default_lists(self) -> list[tuple[str, str]]:
        """Get default lists as (id, title) pairs, e.g. ("investment1", "Investment 1")."""
        lists = []
        for title in self.default_list_titles.split(","):
            title = title.strip()
            if not title:
                continue
            list_id = re.sub(r"[^a-z0-9]+", "", title.lower()) or f"list{len(lists) + 1}"
            lists.append((list_id, title))
        return lists

    @property
    def installment_time(self) -> time:
        """Time of day (UTC) for generated installments."""
        return time(
            self.installment_hour_utc,
            self.installment_minute_utc,
            tzinfo=timezone.utc,
        )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    lists_sheet_name: str = Field(
        default="Lists",
        description="Name of the sheet for lists"
    )
    cards_sheet_name: str = Field(
        default="Cards",
        description="Name of the sheet for cards"
    )
    order_sheet_name: str = Field(
        default="BoardOrder",
        description="Name of the sheet holding the list display order"
    )

    # Subscription and retry behaviour
    poll_interval_seconds: float = Field(
        default=5.0,
        ge=0.1,
        le=300.0,
        description="How often the subscription polls the spreadsheet for changes"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per remote write before it is reported as failed"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def board(self) -> BoardSettings:
        return BoardSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks: a missing remote store configuration
    means the board will start in local (fallback) mode.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.board
        results["board"] = True
    except Exception as e:
        results["board"] = False
        results["board_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
