#!/usr/bin/env python3
"""Layered configuration manager for regroup.

Configuration is resolved from several sources with precedence:
compiled defaults < YAML config file < REGROUP_* environment variables
< command-line arguments < runtime updates.

Example:
    >>> config = ConfigManager()
    >>> config.load_file("regroup.yaml")
    >>> config.get("regroup.rules_file")
    '/etc/regroup/grouping_rules.conf'
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from regroup.core.constants import DEFAULT_CONFIG, ErrorCode

ENV_PREFIX = "REGROUP_"


class ConfigSource(Enum):
    """Configuration source precedence levels."""

    COMPILED_DEFAULTS = 1  # Lowest precedence
    USER_CONFIG = 2
    ENVIRONMENT = 3
    CLI_ARGS = 4
    RUNTIME = 5  # Highest precedence


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigManager:
    """Thread-safe layered configuration manager."""

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional YAML config file to load
            load_environment: Whether to read REGROUP_* environment variables
        """
        self._config: Dict[ConfigSource, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        self._config[ConfigSource.COMPILED_DEFAULTS] = copy.deepcopy(DEFAULT_CONFIG)

        if config_file:
            self.load_file(config_file)

        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Load configuration from YAML file.

        Args:
            file_path: Path to YAML config file
            source: Configuration source level

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT)
        except OSError as e:
            raise ConfigError(f"Error loading config {file_path}: {e}", ErrorCode.INTERNAL_ERROR)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

        with self._lock:
            self._config[source] = config_data

    def _load_environment(self) -> None:
        """Load configuration from environment variables.

        Only the known top-level settings are mapped, since their names
        contain underscores themselves:
            REGROUP_RULES_FILE, REGROUP_COMMENT_MARKER,
            REGROUP_LOG_LEVEL, REGROUP_LOG_FILE
        """
        mapping = {
            f"{ENV_PREFIX}RULES_FILE": ("rules_file",),
            f"{ENV_PREFIX}COMMENT_MARKER": ("comment_marker",),
            f"{ENV_PREFIX}LOG_LEVEL": ("logging", "level"),
            f"{ENV_PREFIX}LOG_FILE": ("logging", "file"),
        }

        env_config: Dict[str, Any] = {}
        for var, parts in mapping.items():
            value = os.environ.get(var)
            if value is None:
                continue

            current = env_config
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value

        if env_config:
            with self._lock:
                self._config[ConfigSource.ENVIRONMENT] = {"regroup": env_config}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Dot-separated key path (e.g., "regroup.logging.level")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        with self._lock:
            for source in sorted(self._config.keys(), key=lambda s: s.value, reverse=True):
                value = self._get_nested(self._config[source], key)
                if value is not None:
                    return value

            return default

    def _get_nested(self, config: Dict[str, Any], key: str) -> Optional[Any]:
        current: Any = config

        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]

        return current

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set configuration value.

        Args:
            key: Dot-separated key path
            value: Value to set
            source: Configuration source level
        """
        with self._lock:
            current = self._config.setdefault(source, {})

            parts = key.split(".")
            for part in parts[:-1]:
                current = current.setdefault(part, {})

            current[parts[-1]] = value
