"""
Retail Action Brief
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety. Every decision
threshold lives here so rules can be tuned without touching rule logic.
"""

from functools import lru_cache
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DecisionThresholds(BaseSettings):
    """Decision Classifier Thresholds"""

    model_config = SettingsConfigDict(env_prefix="DECISION_")

    high_velocity_threshold: float = Field(default=0.5, ge=0, description="Units/day at or above which a SKU is a fast mover")
    low_velocity_threshold: float = Field(default=0.1, ge=0, description="Units/day below which a SKU is a slow mover")
    high_margin_threshold: float = Field(default=50.0, description="Margin percent at or above which a line is protected")
    low_stock_days: int = Field(default=10, ge=0, description="Days of coverage at or below which to reorder")
    critical_stock_days: int = Field(default=5, ge=0, description="Days of coverage at or below which reorder is critical")
    min_stock_for_discount: float = Field(default=5, ge=0, description="Minimum units on hand to suggest a discount")
    slow_mover_days: int = Field(default=14, ge=0, description="Days without a sale that make a SKU a slow mover")
    impact_horizon_days: int = Field(default=7, gt=0, description="Days used to project dollar impact")


class MarginSettings(BaseSettings):
    """Weighted Margin Configuration"""

    model_config = SettingsConfigDict(env_prefix="MARGIN_")

    high_confidence_coverage: float = Field(
        default=60.0,
        ge=0,
        le=100,
        description="Revenue coverage percent needed for a 'high' confidence label",
    )
    min_skus_with_margin: int = Field(
        default=1,
        ge=1,
        description="Minimum SKUs with a computable margin before an average is reported",
    )


class BriefSettings(BaseSettings):
    """Executive Brief Configuration"""

    model_config = SettingsConfigDict(env_prefix="BRIEF_")

    max_actions: int = Field(default=3, ge=0, le=3, description="Maximum actions surfaced in the brief")


class IdentitySettings(BaseSettings):
    """SKU Identity Gate Configuration"""

    model_config = SettingsConfigDict(env_prefix="IDENTITY_")

    sentinel_names: List[str] = Field(
        default=["missing", "unknown"],
        description="Placeholder names that never count as a real identity",
    )

    @field_validator("sentinel_names")
    @classmethod
    def normalize_sentinels(cls, v: List[str]) -> List[str]:
        """Compare sentinels case-insensitively"""
        return [name.strip().lower() for name in v if name.strip()]


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="retail-action-brief", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Subsystem configurations
    thresholds: DecisionThresholds = Field(default_factory=DecisionThresholds)
    margin: MarginSettings = Field(default_factory=MarginSettings)
    brief: BriefSettings = Field(default_factory=BriefSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
