"""
Configuration module for the Fleet Sync service.
Centralizes Fleet API access, reconciliation cadence and the
transient-fetch protection thresholds.
"""

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ProtectionConfig:
    """
    Immutable tunables for one protected record stream.

    Consumed once at construction time by the cache, detector and
    protected fetcher.
    """

    max_retries: int = 3
    retry_base_delay: timedelta = timedelta(seconds=2)
    cache_max_age: timedelta = timedelta(minutes=60)
    detection_window: timedelta = timedelta(minutes=10)
    oscillation_threshold: int = 2
    drop_threshold: float = 0.3

    def __post_init__(self):
        """Validate field values."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

        if self.retry_base_delay < timedelta(0):
            raise ValueError(
                f"retry_base_delay must not be negative, got {self.retry_base_delay}"
            )

        if self.cache_max_age <= timedelta(0):
            raise ValueError(f"cache_max_age must be positive, got {self.cache_max_age}")

        if self.detection_window <= timedelta(0):
            raise ValueError(
                f"detection_window must be positive, got {self.detection_window}"
            )

        if self.oscillation_threshold < 1:
            raise ValueError(
                f"oscillation_threshold must be >= 1, got {self.oscillation_threshold}"
            )

        if not 0.0 < self.drop_threshold <= 1.0:
            raise ValueError(
                f"drop_threshold must be in (0.0, 1.0], got {self.drop_threshold}"
            )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Application Settings ────────────────────────────────────────────
    app_name: str = "Fleet Sync Service"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 8080

    # ─── Fleet API Settings ──────────────────────────────────────────────
    fleet_project_number: str = Field(
        ...,
        min_length=1,
        description="GCP project number of the fleet host project"
    )
    fleet_api_endpoint: str = Field(
        default="https://gkehub.googleapis.com/v1",
        description="Base URL of the GKE Hub (Fleet) REST API"
    )
    fleet_access_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent with Fleet API requests"
    )
    fleet_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single Fleet API request"
    )

    # ─── Reconciliation Settings ─────────────────────────────────────────
    reconcile_interval_seconds: int = Field(
        default=10,
        ge=1,
        description="Interval between Fleet API polls"
    )
    secret_namespace: str = Field(
        default="argocd",
        description="Namespace holding Argo CD cluster secrets"
    )

    # ─── Transient-Fetch Protection ──────────────────────────────────────
    protection_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after a failed Fleet API list call"
    )
    protection_retry_base_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Linear backoff step between retries"
    )
    protection_cache_max_age_seconds: int = Field(
        default=3600,
        ge=1,
        description="How long the last trusted response may be served"
    )
    protection_detection_window_seconds: int = Field(
        default=600,
        ge=1,
        description="Time window of item counts considered by the detector"
    )
    protection_oscillation_threshold: int = Field(
        default=2,
        ge=1,
        description="Count changes within the window that indicate instability"
    )
    protection_drop_threshold: float = Field(
        default=0.3,
        gt=0.0,
        le=1.0,
        description="Fractional decrease from the window average that marks a sudden drop"
    )

    # ─── Helper Methods ──────────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def protection_config(self) -> ProtectionConfig:
        """Build the immutable protection configuration."""
        return ProtectionConfig(
            max_retries=self.protection_max_retries,
            retry_base_delay=timedelta(seconds=self.protection_retry_base_delay_seconds),
            cache_max_age=timedelta(seconds=self.protection_cache_max_age_seconds),
            detection_window=timedelta(seconds=self.protection_detection_window_seconds),
            oscillation_threshold=self.protection_oscillation_threshold,
            drop_threshold=self.protection_drop_threshold,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings: Application configuration object
    """
    return Settings()
