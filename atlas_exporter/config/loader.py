"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import ExporterConfig
from .settings import Settings


class ConfigurationError(Exception):
    """Raised when the exporter cannot be configured."""


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> ExporterConfig:
        """
        Build the exporter configuration from all sources.

        Precedence, lowest first: model defaults, YAML file, environment
        variables, explicit overrides (CLI flags). Override values of None
        are ignored.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Nested dict of values taking precedence over everything

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            ConfigurationError: If the file is missing or credentials are absent
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        raw_config: Dict[str, Any] = {}
        if config_path:
            raw_config = ConfigLoader.load_file(config_path)

        raw_config = ConfigLoader._merge(raw_config, Settings.atlas_from_env())
        raw_config = ConfigLoader._merge(raw_config, overrides or {})

        atlas = raw_config.get("atlas") or {}
        missing = [key for key in ("public_key", "private_key", "project_id") if not atlas.get(key)]
        if missing:
            raise ConfigurationError(f"Missing required Atlas settings: {', '.join(missing)}")

        return ExporterConfig(**raw_config)

    @staticmethod
    def load_file(config_path: str) -> Dict[str, Any]:
        """
        Read a YAML configuration file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Dict: Raw configuration mapping
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge *updates* into a copy of *base*, skipping None values."""
        merged = dict(base)
        for key, value in updates.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigLoader._merge(merged[key], value)
            elif isinstance(value, dict):
                merged[key] = ConfigLoader._merge({}, value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
