"""
Central configuration management for cloudprovision.

This module provides type-safe configuration management using Pydantic,
supporting multiple environments and validation of settings.
"""

from typing import Any, Dict, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloudSettings(BaseSettings):
    """Cloud vendor credentials and placement."""

    # AWS
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    aws_session_token: Optional[str] = Field(default=None)
    aws_profile: Optional[str] = Field(default=None)
    aws_region: str = Field(default="us-east-1")
    # Alternate endpoint, e.g. LocalStack
    aws_endpoint_url: Optional[str] = Field(default=None)

    default_vendor: str = Field(default="aws")
    default_tags: Dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)


class ProvisioningSettings(BaseSettings):
    """Polling, retry and deadline behaviour of provider operations."""

    poll_initial_delay: float = Field(default=5.0)
    poll_max_delay: float = Field(default=60.0)
    poll_backoff_factor: float = Field(default=2.0)
    operation_timeout: float = Field(default=1800.0)  # seconds
    transient_retry_attempts: int = Field(default=5)
    transient_retry_delay: float = Field(default=1.0)
    database_master_username: str = Field(default="cloudadmin")

    @field_validator(
        "poll_initial_delay",
        "poll_max_delay",
        "operation_timeout",
        "transient_retry_delay",
    )
    @classmethod
    def validate_positive(cls, v):
        """Delays and timeouts must be positive."""
        if v <= 0:
            raise ValueError("Delays and timeouts must be positive")
        return v

    @field_validator("poll_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v):
        """Backoff must not shrink the interval."""
        if v < 1:
            raise ValueError("Backoff factor must be at least 1")
        return v

    @field_validator("transient_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v):
        """Validate retry attempts is not negative."""
        if v < 0:
            raise ValueError("Retry attempts cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_delay_bounds(self):
        if self.poll_max_delay < self.poll_initial_delay:
            raise ValueError("poll_max_delay must be >= poll_initial_delay")
        return self

    model_config = SettingsConfigDict(env_prefix="PROVISIONING_", case_sensitive=False)


class MonitoringSettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")  # json or text
    log_file: Optional[str] = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)


class AppSettings(BaseSettings):
    """Main application settings."""

    app_name: str = Field(default="cloudprovision")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Nested settings
    cloud: CloudSettings = Field(default_factory=CloudSettings)
    provisioning: ProvisioningSettings = Field(default_factory=ProvisioningSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment name."""
        valid_envs = ["development", "testing", "staging", "production", "ci"]
        if v not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment in ["testing", "ci"]

    def get_safe_dict(self) -> Dict[str, Any]:
        """Get configuration dict with sensitive values masked."""
        config = self.model_dump()

        def mask_sensitive(obj):
            """Recursively mask sensitive fields."""
            if isinstance(obj, dict):
                for key, value in obj.items():
                    if any(
                        sensitive in key.lower()
                        for sensitive in ["password", "secret", "key_id", "token"]
                    ):
                        if value and str(value).strip():
                            obj[key] = "***MASKED***"
                    elif isinstance(value, (dict, list)):
                        mask_sensitive(value)
            elif isinstance(obj, list):
                for item in obj:
                    if isinstance(item, (dict, list)):
                        mask_sensitive(item)

        mask_sensitive(config)
        return config

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


# Singleton pattern for settings
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload of settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
