"""
Configuration Loader
Loads and validates the YAML run settings file
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from ..errors import SettingsError
from .app_config import AppConfig, ChannelFilter, Locations
from .block_filter import BlockFilterConfig


class ConfigLoader:
    """
    Loads and validates run settings from YAML files.

    Responsibilities:
    - Read YAML configuration file
    - Validate types of every known section
    - Return validated AppConfig instance
    """

    def __init__(self, config_path: Path):
        """
        Initialize ConfigLoader with path to config file.

        Args:
            config_path: Path to YAML configuration file
        """
        self._config_path = config_path

    def load(self) -> AppConfig:
        """
        Load and validate configuration from YAML file.

        Returns:
            AppConfig: Validated configuration object

        Raises:
            SettingsError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
        """
        config_data = self._load_yaml()
        return self.from_dict(config_data)

    def from_dict(self, config_data: Dict[str, Any]) -> AppConfig:
        """Validate an already parsed settings mapping."""
        storage = self._validate_storage_config(config_data)

        return AppConfig(
            channels_file=self._validate_channels_file(config_data),
            data_dir=storage["data_dir"],
            log_dir=storage["log_dir"],
            locations=self._validate_locations(config_data),
            channel_filter=self._validate_filter(config_data),
            prevent_channel_fetch=self._validate_flag(config_data, "prevent_channel_fetch", False),
            print_channels=self._validate_flag(config_data, "print_channels", False),
            block_filter=self._validate_block_filter(config_data)
        )

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML file and return parsed data."""
        if not self._config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self._config_path}"
            )

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if data is None:
                return {}

            if not isinstance(data, dict):
                raise SettingsError(
                    "Configuration must be a YAML mapping/dictionary"
                )

            return data

        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML syntax: {e}")

    def _validate_channels_file(self, config: Dict[str, Any]) -> str:
        """Validate channels_file field."""
        channels_file = config.get("channels_file", "channels.json")

        if not isinstance(channels_file, str):
            raise SettingsError(
                f"Field 'channels_file' must be a string, got {type(channels_file).__name__}"
            )

        if not channels_file.strip():
            raise SettingsError("Field 'channels_file' cannot be empty")

        return channels_file.strip()

    def _validate_flag(self, config: Dict[str, Any], name: str, default: bool) -> bool:
        """Validate an optional boolean field."""
        value = config.get(name, default)

        if not isinstance(value, bool):
            raise SettingsError(
                f"Field '{name}' must be a boolean, got {type(value).__name__}"
            )

        return value

    def _validate_storage_config(self, config: Dict[str, Any]) -> Dict[str, str]:
        """Validate storage section."""
        defaults = {
            "data_dir": "./data",
            "log_dir": "./logs"
        }

        if "storage" not in config:
            return defaults

        storage = config["storage"]
        if not isinstance(storage, dict):
            return defaults

        data_dir = storage.get("data_dir", defaults["data_dir"])
        log_dir = storage.get("log_dir", defaults["log_dir"])

        if not isinstance(data_dir, str):
            raise SettingsError(f"storage.data_dir must be string, got {type(data_dir).__name__}")
        if not isinstance(log_dir, str):
            raise SettingsError(f"storage.log_dir must be string, got {type(log_dir).__name__}")

        return {
            "data_dir": data_dir.strip(),
            "log_dir": log_dir.strip()
        }

    def _validate_locations(self, config: Dict[str, Any]) -> Locations:
        """Validate locations section."""
        locations = config.get("locations")
        if not isinstance(locations, dict):
            return Locations()

        values = {}
        for name in ("storage_drive", "video_dir", "music_dir"):
            value = locations.get(name)
            if value is not None and not isinstance(value, str):
                raise SettingsError(f"locations.{name} must be string, got {type(value).__name__}")
            values[name] = value.strip() if value else None

        return Locations(**values)

    def _validate_filter(self, config: Dict[str, Any]) -> ChannelFilter:
        """Validate filter section."""
        filter_config = config.get("filter")
        if not isinstance(filter_config, dict):
            return ChannelFilter()

        enable_filtering = filter_config.get("enable_filtering", True)
        if not isinstance(enable_filtering, bool):
            raise SettingsError("filter.enable_filtering must be a boolean")

        return ChannelFilter(
            enable_filtering=enable_filtering,
            channel=self._optional_string(filter_config, "channel"),
            channel_list=self._string_list(filter_config, "channel_list"),
            group=self._optional_string(filter_config, "group"),
            group_list=self._string_list(filter_config, "group_list"),
            start_at=self._optional_string(filter_config, "start_at"),
            stop_at=self._optional_string(filter_config, "stop_at")
        )

    def _validate_block_filter(self, config: Dict[str, Any]) -> Optional[BlockFilterConfig]:
        """Validate the optional run-wide sponsorBlock section."""
        if "sponsorBlock" not in config:
            return None

        section = config["sponsorBlock"]
        if not isinstance(section, dict):
            raise SettingsError("sponsorBlock must be a mapping")

        return BlockFilterConfig.from_dict(section)

    @staticmethod
    def _optional_string(section: Dict[str, Any], name: str) -> Optional[str]:
        value = section.get(name)
        if value is None:
            return None
        if not isinstance(value, str):
            raise SettingsError(f"filter.{name} must be string, got {type(value).__name__}")
        return value.strip() or None

    @staticmethod
    def _string_list(section: Dict[str, Any], name: str) -> List[str]:
        value = section.get(name)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(e, str) for e in value):
            raise SettingsError(f"filter.{name} must be a list of strings")
        return [e.strip() for e in value if e.strip()]
