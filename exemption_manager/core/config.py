"""Core configuration settings.

Centralized configuration using Pydantic Settings for environment
variable management with sensible defaults.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Command-line flags take precedence over these values; the settings
    only provide the defaults the CLI starts from.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "MCSB Exemption Manager"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # =========================================================================
    # Tagging convention
    # =========================================================================

    tag_name: str = Field(default="DefenderExempt", alias="EXEMPTION_TAG_NAME")
    tag_value: str = Field(default="true", alias="EXEMPTION_TAG_VALUE")

    # =========================================================================
    # Exemption defaults
    # =========================================================================

    default_category: Literal["Waiver", "Mitigated"] = Field(
        default="Mitigated", alias="EXEMPTION_CATEGORY"
    )
    waiver_expiry_days: int = Field(default=90, ge=1, alias="WAIVER_EXPIRY_DAYS")
    mitigated_expiry_days: int = Field(default=365, ge=1, alias="MITIGATED_EXPIRY_DAYS")

    # =========================================================================
    # Quota & throttling
    # =========================================================================

    quota_hard_limit: int = Field(default=1000, ge=1, alias="QUOTA_HARD_LIMIT")
    quota_safety_threshold: int = Field(default=950, ge=1, alias="QUOTA_SAFETY_THRESHOLD")
    batch_size: int = Field(default=5, ge=1, alias="BATCH_SIZE")
    batch_delay_seconds: float = Field(default=2.0, ge=0, alias="BATCH_DELAY_SECONDS")
    call_delay_seconds: float = Field(default=0.5, ge=0, alias="CALL_DELAY_SECONDS")

    # Azure Authentication (service principal; DefaultAzureCredential otherwise)
    azure_tenant_id: str | None = None
    azure_client_id: str | None = None
    azure_client_secret: str | None = None

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("default_category", mode="before")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        """Accept category names case-insensitively."""
        if isinstance(v, str):
            for category in ("Waiver", "Mitigated"):
                if v.strip().lower() == category.lower():
                    return category
        return v

    @model_validator(mode="after")
    def validate_quota_limits(self):
        """The safety threshold must sit at or below the provider hard limit."""
        if self.quota_safety_threshold > self.quota_hard_limit:
            logger.error(
                f"Quota safety threshold ({self.quota_safety_threshold}) exceeds "
                f"hard limit ({self.quota_hard_limit})"
            )
            raise ValueError("QUOTA_SAFETY_THRESHOLD cannot exceed QUOTA_HARD_LIMIT")
        return self

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_configured(self) -> bool:
        """Check if explicit service principal credentials are present."""
        return all([
            self.azure_tenant_id,
            self.azure_client_id,
            self.azure_client_secret,
        ])

    def expiry_days_for(self, category: str) -> int:
        """Get the default exemption validity in days for a category."""
        if str(category).lower() == "waiver":
            return self.waiver_expiry_days
        return self.mitigated_expiry_days


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
