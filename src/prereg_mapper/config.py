"""
Configuration settings for the mapping engine.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings, overridable from the environment or a .env file."""

    # Confidence tiers (inclusive lower bounds)
    high_confidence: float = Field(default=0.90, validation_alias="PREREG_HIGH_CONFIDENCE")
    medium_confidence: float = Field(default=0.75, validation_alias="PREREG_MEDIUM_CONFIDENCE")

    # Survey inventory
    reserved_column_prefix: str = Field(default="qid", validation_alias="PREREG_RESERVED_COLUMN_PREFIX")

    # Producer request defaults
    template_set: str = Field(default="apa_v1", validation_alias="PREREG_TEMPLATE_SET")
    style_profile: str = Field(default="apa_flextable_ggpubr", validation_alias="PREREG_STYLE_PROFILE")
    default_analysis_id: str = Field(default="analysis", validation_alias="PREREG_DEFAULT_ANALYSIS_ID")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
