"""
Configuration Management for the Financial Plan Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself never reads settings on its own: the session receives
an EngineSettings instance at construction and passes explicit values
down to the pure functions.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Semantic keys and data locations used by the plan engine."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCIAL_PLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    fallback_category: str = Field(
        default="Altro",
        min_length=1,
        description="Category assigned to causali missing from the catalog"
    )

    # Macro names the roll-ups depend on
    income_macro: str = Field(
        default="INCASSATO",
        description="Macro category holding collected cash"
    )
    fixed_costs_macro: str = Field(
        default="COSTI FISSI",
        description="Macro category holding fixed costs"
    )
    variable_costs_macro: str = Field(
        default="COSTI VARIABILI",
        description="Macro category holding variable costs"
    )

    dataset_path: Optional[str] = Field(
        default=None,
        description="Path to the JSON dataset (rows, causali, stats). "
                    "If unset, the bundled dataset is used."
    )
    state_dir: str = Field(
        default="data/state",
        description="Directory for locally persisted plan state"
    )

    @field_validator('income_macro', 'fixed_costs_macro', 'variable_costs_macro')
    @classmethod
    def normalize_macro(cls, v: str) -> str:
        """Macro keys are compared upper-cased."""
        return v.strip().upper()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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
    state_sheet_name: str = Field(
        default="PlanState",
        description="Name of the sheet holding the serialized plan state"
    )
    manual_log_sheet_name: str = Field(
        default="ManualLog",
        description="Name of the append-only sheet for manual edit entries"
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


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    @property
    def effective_log_level(self) -> str:
        """Debug mode always logs everything."""
        return "DEBUG" if self.debug_mode else self.log_level


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
