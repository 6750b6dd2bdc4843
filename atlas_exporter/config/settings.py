"""Environment settings."""

import os
from typing import Any, Dict, Optional


class Settings:
    """Application settings from environment variables."""

    # Environment variable -> atlas config key
    ATLAS_ENV_VARS = {
        "ATLAS_PUBLIC_KEY": "public_key",
        "ATLAS_PRIVATE_KEY": "private_key",
        "ATLAS_PROJECT_ID": "project_id",
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set
            required: Whether the variable is required

        Returns:
            str: Environment variable value

        Raises:
            ValueError: If required variable is not set
        """
        value = os.getenv(key, default)
        if required and not value:
            raise ValueError(f"Required environment variable not set: {key}")
        return value or ""

    @staticmethod
    def atlas_from_env() -> Dict[str, Any]:
        """Atlas settings present in the environment, as a partial config mapping."""
        atlas = {
            config_key: Settings.get(env_var)
            for env_var, config_key in Settings.ATLAS_ENV_VARS.items()
            if Settings.get(env_var)
        }
        return {"atlas": atlas} if atlas else {}
