"""
Configuration and parameter loading using Pydantic.

This module provides centralized configuration management for the analytics engine.
All parameters are loaded from YAML and validated using Pydantic models.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from healthbridge_analytics.utils.exceptions import ConfigurationError


class DatabaseConfig(BaseModel):
    """Relational store configuration."""

    url: str = "sqlite:///data/healthbridge.db"
    echo: bool = False


class AnalyticsConfig(BaseModel):
    """Thresholds and windows used by the trend and projection engines."""

    timezone: str = "UTC"
    default_source: str = "manual"
    min_projection_samples: int = Field(7, ge=2)
    projection_sample_limit: int = Field(30, ge=2)
    default_horizon_days: int = Field(30, gt=0)
    default_period_days: int = Field(30, gt=0)
    moving_average_windows: list[int] = Field(default_factory=lambda: [7, 14, 30])
    plateau_threshold_kg: float = 0.5
    consistency_threshold_kg: float = 0.5
    trend_rate_threshold_kg: float = 0.1


class OutputFilesConfig(BaseModel):
    """Output file names configuration."""

    dashboard: str = "dashboard.json"
    comparison: str = "comparison.json"
    measurements_csv: str = "measurements.csv"


class OutputConfig(BaseModel):
    """Output configuration."""

    dir: str = "output"
    files: OutputFilesConfig = Field(default_factory=OutputFilesConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    console: bool = True


class AppConfig(BaseSettings):
    """Main application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="HEALTHBRIDGE_", case_sensitive=False)


class ParameterLoader:
    """
    Centralized parameter loader for the application.

    Loads and validates configuration from YAML files using Pydantic models.
    Provides type-safe access to all configuration parameters.
    """

    def __init__(self, config_path: str = "config/config.yaml") -> None:
        """
        Initialize parameter loader.

        Args:
            config_path: Path to the YAML configuration file.

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid.
        """
        self.config_path = Path(config_path)
        self.config: AppConfig
        self._load_config()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file.

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid.
        """
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}

            self.config = AppConfig(**config_dict)

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def get_database_config(self) -> DatabaseConfig:
        """Get relational store configuration."""
        return self.config.database

    def get_analytics_config(self) -> AnalyticsConfig:
        """Get analytics thresholds configuration."""
        return self.config.analytics

    def get_output_config(self) -> OutputConfig:
        """Get output configuration."""
        return self.config.output

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return self.config.logging

    def get_raw_config(self) -> dict[str, Any]:
        """
        Get raw configuration dictionary.

        Returns:
            Dictionary representation of the configuration.
        """
        return self.config.model_dump()
