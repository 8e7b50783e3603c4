"""
Manages loading, validation, and migration of the JSON configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from spotstage.exceptions import ConfigurationError
from spotstage.models.config import AppConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's JSON config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = Path(config_file_path)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the JSON file, applies CLI overrides, and
        validates it. A missing file is created with default values first.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable, invalid, or
            validation fails.
        """
        if not self.config_file_path.is_file():
            log.info(f"Creating default configuration at '{self.config_file_path}'.")
            self.save_config(AppConfig().model_dump())

        config_from_file = self.as_dict()

        if self._migrate_if_needed(config_from_file):
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return AppConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, settings: dict[str, Any]) -> None:
        """
        Validates and saves a configuration file.

        Args:
            settings: A dictionary of settings to save. Unknown keys are kept.
        """
        known = {k: v for k, v in settings.items() if k in AppConfig.get_config_keys()}
        try:
            AppConfig(**known)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
        self._write(settings)

    def set_value(self, key: str, raw_value: str) -> AppConfig:
        """Sets one key from a raw command-line string and saves the file."""
        if key not in AppConfig.get_config_keys():
            raise ConfigurationError(
                f"Unknown configuration key '{key}'. "
                f"Valid keys: {', '.join(sorted(AppConfig.get_config_keys()))}."
            )

        settings = self.as_dict() if self.config_file_path.is_file() else {}
        settings[key] = self._coerce(key, raw_value)
        self.save_config({**AppConfig().model_dump(), **settings})
        return self.load_config()

    def as_dict(self) -> dict[str, Any]:
        """Reads the JSON file into a dictionary."""
        try:
            with open(self.config_file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Could not read configuration file: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object.")
        return data

    @staticmethod
    def _coerce(key: str, raw_value: str) -> Any:
        default = AppConfig.model_fields[key].get_default(call_default_factory=True)
        if isinstance(default, list):
            return [item.strip() for item in raw_value.split(",") if item.strip()]
        if isinstance(default, int):
            try:
                return int(raw_value)
            except ValueError as e:
                raise ConfigurationError(
                    f"'{key}' must be an integer, got '{raw_value}'."
                ) from e
        return raw_value

    def _write(self, settings: dict[str, Any]) -> None:
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _migrate_if_needed(self, config_section: dict[str, Any]) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = AppConfig().model_dump()
        needs_saving = False

        for key in AppConfig.get_config_keys():
            if key not in config_section:
                config_section[key] = defaults[key]
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                self._write(config_section)
            except ConfigurationError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
