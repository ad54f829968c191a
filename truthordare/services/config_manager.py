import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from truthordare.models.config import AppConfig

logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


class ConfigManager:
    """Loads application configuration from YAML and the environment"""

    def __init__(
        self,
        config_path: str = "config/app_config.yaml",
        load_env: bool = True,
    ):
        self.config_path = Path(config_path)
        self.env_loaded = not load_env
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:
            load_dotenv()
            self.env_loaded = True

        # 2. Missing file means built-in defaults
        if not self.config_path.exists():
            logger.warning("config_file_missing", path=str(self.config_path))
            self._config = AppConfig()
            return self._config

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute env vars
        try:
            substituted_content = Template(raw_content).safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted_content) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if not isinstance(config_data, dict):
            raise ConfigValidationError(
                f"Config root must be a mapping, got {type(config_data).__name__}"
            )

        # 5. Validate with Pydantic
        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path),
            scheduler_enabled=self._config.scheduler.enabled,
            ai_configured=bool(self._config.ai.api_key),
        )
        return self._config

    def reload(self) -> AppConfig:
        self._config = None
        return self.load_config()
