"""Local configuration loading for the bundled local-config.yaml."""

import os
from importlib.resources import files
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError


class ConfigLoader:
    """Loads validator settings from local-config.yaml."""

    DEFAULT_TEMPLATES_LOCATION = "messages.yaml"
    DEFAULT_FETCH_TIMEOUT = 10
    # Environment variable that overrides message_templates_location
    TEMPLATES_ENV_VAR = "RULE_VALIDATOR_MESSAGES"

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_path: Path to a local-config.yaml. Defaults to the file
                bundled in the rule_validator package.

        Raises:
            ConfigurationError: If the config file is not a YAML mapping
        """
        if config_path is None:
            # Relative locations in the bundled config resolve inside the package
            self.config_dir = files("rule_validator")
            config_file = self.config_dir.joinpath("local-config.yaml")
        else:
            config_file = Path(config_path)
            self.config_dir = config_file.parent
        self.config_path = str(config_file)

        with config_file.open("r") as f:
            self.local_config = yaml.safe_load(f) or {}

        if not isinstance(self.local_config, dict):
            raise ConfigurationError(
                f"Config file {self.config_path} must contain a mapping, "
                f"got {type(self.local_config).__name__}"
            )

    def get_message_templates_location(self) -> str:
        """
        Get where message templates are loaded from.

        The environment variable wins over the config file; the config file
        wins over the bundled default.
        """
        override = os.environ.get(self.TEMPLATES_ENV_VAR)
        if override:
            return override
        return self.local_config.get(
            "message_templates_location", self.DEFAULT_TEMPLATES_LOCATION
        )

    def get_fetch_timeout(self) -> float:
        """Get the timeout (seconds) for fetching remote message templates."""
        timeout = self.local_config.get("fetch_timeout_seconds", self.DEFAULT_FETCH_TIMEOUT)
        try:
            return float(timeout)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"fetch_timeout_seconds must be a number, got {timeout!r}"
            )
