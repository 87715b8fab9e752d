"""
settings_loader.py

Configuration management for the density clustering service.
Loads and validates settings from YAML configuration with environment variable substitution.

Features:
- YAML configuration loading with validation
- Environment variable substitution (${VAR_NAME} syntax)
- Singleton pattern for global settings access
- Type-safe configuration with Pydantic models
- Default values and validation
"""

import os
import re
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from density_clustering.storage.distance import DISTANCE_FUNCTIONS, get_distance_function
from density_clustering.storage.neighborhood import INDEX_TYPES
from density_clustering.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models (Pydantic)
# =============================================================================

class ServiceSettings(BaseModel):
    """General service settings."""
    name: str = Field(default="density-clustering", description="Service name")
    version: str = Field(default="1.0.0", description="Service version")
    environment: str = Field(default="production", description="Environment (development, staging, production)")


class DBSCANSettings(BaseModel):
    """DBSCAN clustering settings."""
    distance_function: str = Field(default="euclidean", description="Distance function")
    epsilon: Union[float, str] = Field(default=0.5, description="Neighborhood radius, suitable to the distance function")
    min_pts: int = Field(default=5, gt=0, description="Minimum number of points in an epsilon-neighborhood")
    index: str = Field(default="auto", description="Range query index (auto, linear, kd_tree, ball_tree, brute)")

    @field_validator("distance_function")
    @classmethod
    def validate_distance_function(cls, v: str) -> str:
        v = v.lower()
        if v not in DISTANCE_FUNCTIONS:
            raise ValueError(f"must be one of {list(DISTANCE_FUNCTIONS.keys())}")
        return v

    @field_validator("epsilon")
    @classmethod
    def validate_epsilon(cls, v: Union[float, str], info: ValidationInfo) -> Union[float, str]:
        # Epsilon must match the pattern of the selected distance function
        name = info.data.get("distance_function")
        if name is None:
            return v
        try:
            return get_distance_function(name).parse_epsilon(v)
        except ConfigurationError as e:
            raise ValueError(e.message)

    @field_validator("index")
    @classmethod
    def validate_index(cls, v: str) -> str:
        v = v.lower()
        if v != "auto" and v not in INDEX_TYPES:
            raise ValueError(f"must be one of {['auto', *INDEX_TYPES]}")
        return v


class ProgressSettings(BaseModel):
    """Progress reporting settings."""
    enabled: bool = Field(default=True, description="Log clustering progress")
    log_interval: int = Field(default=100, ge=1, description="Log progress every N processed objects")


class OutputSettings(BaseModel):
    """Result output settings."""
    output_dir: str = Field(default="data/clusters", description="Output directory")
    format: str = Field(default="json", description="Output format (json or jsonl)")
    pretty_print: bool = Field(default=False, description="Pretty print JSON")
    file_pattern: str = Field(default="clusters_{run_id}.{ext}", description="File naming pattern")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "jsonl"):
            raise ValueError("must be 'json' or 'jsonl'")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Log format (json or console)")
    file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("must be 'json' or 'console'")
        return v


class Settings(BaseModel):
    """Root configuration model."""
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    dbscan: DBSCANSettings = Field(default_factory=DBSCANSettings)
    progress: ProgressSettings = Field(default_factory=ProgressSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Configuration Manager (Singleton)
# =============================================================================

class ConfigManager:
    """
    Singleton configuration manager that loads and caches settings.

    Features:
    - Loads YAML configuration from file
    - Substitutes environment variables using ${VAR_NAME} syntax
    - Validates configuration using Pydantic models
    - Provides global access to settings
    """

    _instance: Optional['ConfigManager'] = None
    _settings: Optional[Settings] = None

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    @classmethod
    def load_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to configuration file. If None, searches the
                default locations and falls back to built-in defaults.

        Returns:
            Settings object with validated configuration

        Raises:
            ConfigurationError: If the file is missing (explicit path), not
                valid YAML, or fails validation
        """
        if cls._settings is not None:
            return cls._settings

        if config_path is None:
            possible_paths = [
                Path(os.getenv("CONFIG_PATH", "config/settings.yaml")),
                Path("config/settings.yaml"),
            ]

            config_path_obj = None
            for path in possible_paths:
                if path.exists():
                    config_path_obj = path
                    break

            if config_path_obj is None:
                logger.warning("No configuration file found, using defaults")
                cls._settings = Settings()
                return cls._settings
        else:
            config_path_obj = Path(config_path)
            if not config_path_obj.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    parameter="config",
                )

        logger.info(f"Loading configuration from: {config_path_obj}")

        try:
            with open(config_path_obj, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load YAML configuration: {e}")
            raise ConfigurationError(f"Invalid YAML configuration: {e}", parameter="config")

        config_dict = cls._substitute_env_vars(raw_config)

        try:
            cls._settings = Settings(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                parameter=cls._first_error_location(e),
            )

        logger.info("Configuration loaded and validated successfully")
        return cls._settings

    @classmethod
    def get_settings(cls) -> Settings:
        """
        Get cached settings. Loads from default path if not already loaded.

        Returns:
            Settings object
        """
        if cls._settings is None:
            cls.load_config()
        return cls._settings

    @classmethod
    def _substitute_env_vars(cls, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            config: Configuration dictionary or value

        Returns:
            Configuration with substituted values
        """
        if isinstance(config, dict):
            return {k: cls._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [cls._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            # Match ${VAR_NAME} or ${VAR_NAME:default}
            pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

            def replace_var(match):
                var_name = match.group(1)
                default_value = match.group(2) if match.group(2) is not None else ""
                return os.getenv(var_name, default_value)

            return re.sub(pattern, replace_var, config)
        else:
            return config

    @staticmethod
    def _first_error_location(error: ValidationError) -> Optional[str]:
        """Dotted location of the first validation error, e.g. 'dbscan.min_pts'."""
        errors = error.errors()
        if not errors:
            return None
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        return location or None

    @classmethod
    def reload_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Reload configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            Reloaded Settings object
        """
        cls._settings = None
        return cls.load_config(config_path)

    @classmethod
    def reset(cls) -> None:
        """Drop cached settings."""
        cls._settings = None


# =============================================================================
# Convenience Functions
# =============================================================================

def get_settings() -> Settings:
    """
    Get application settings (convenience function).

    Returns:
        Settings object
    """
    return ConfigManager.get_settings()
