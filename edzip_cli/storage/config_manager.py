"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from edzip_cli.exceptions import ConfigurationError
from edzip_cli.models.config import AppConfig

log = logging.getLogger(__name__)

DEFAULT_DATA_FILENAME = "data.json"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    @property
    def default_data_file(self) -> str:
        return str(self.config_file_path.parent / DEFAULT_DATA_FILENAME)

    def defaults(self) -> AppConfig:
        """Returns the configuration used when no file exists."""
        return AppConfig(
            data_file=self.default_data_file,
            config_path=str(self.config_file_path.parent),
        )

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing configuration file is not an error: built-in defaults are used.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            try:
                config_from_file = self._get_config_as_dict()
            except ValueError as e:
                raise ConfigurationError(f"Invalid value in configuration file: {e}") from e
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )
            config_from_file = {"data_file": self.default_data_file}

        # Override with CLI options
        if cli_options:
            config_from_file.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return AppConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: Values to store; every other key gets its default.
        """
        settings = settings or {}
        defaults = self.defaults()
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        for key in AppConfig.get_ini_keys():
            value = settings.get(key, getattr(defaults, key, None))
            config["DEFAULT"][key] = self._to_ini_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return "" if value is None else str(value)

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        return {
            "data_file": section.get("data_file", self.default_data_file),
            "sort_order": section.get("sort_order", "upload_desc"),
            "view_mode": section.get("view_mode", "gallery"),
            "fuzzy_threshold": section.getfloat("fuzzy_threshold", 0.4),
            "output_dir": section.get("output_dir", "~/Downloads/edzip"),
            "trigger": section.get("trigger", "save"),
            "download_spacing_ms": section.getint("download_spacing_ms", 500),
            "notice_duration_ms": section.getint("notice_duration_ms", 3000),
            "max_workers": section.getint("max_workers", 4),
        }

    def get_config_as_dict(self) -> dict[str, Any]:
        """Returns the file's settings, or the defaults when there is no file."""
        if not self.config_file_path.is_file():
            defaults = self.defaults()
            return {
                key: self._to_ini_value(getattr(defaults, key))
                for key in AppConfig.get_ini_keys()
            }
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
            return self._get_config_as_dict()
        except (configparser.Error, ValueError) as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = self.defaults()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in AppConfig.get_ini_keys():
            if key not in config_section:
                config_section[key] = self._to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
