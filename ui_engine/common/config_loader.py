"""
================================================================================
Configuration Loader
================================================================================

Engine configuration: one YAML file, overridable key by key from the
environment, and the typed EngineSettings built from it.

Lookup order for a dot path such as `ui.timeouts.element`:
    1. Environment variable UI_TIMEOUTS_ELEMENT (coerced to the default's type)
    2. config/config.yaml (or the file named by UI_ENGINE_CONFIG)
    3. The caller's default

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

CONFIG_PATH_ENV = "UI_ENGINE_CONFIG"

_TRUE_WORDS = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """The configuration file cannot be used."""
    pass


@dataclass
class EngineSettings:
    """
    Timeouts and bounds used by the element finder, control driver, calendar
    navigator and scenario steps. All durations are milliseconds.
    """
    element_timeout: int = 10000
    option_timeout: int = 5000
    click_timeout: int = 5000
    list_open_timeout: int = 1500
    toggle_confirm_timeout: int = 2000
    tooltip_timeout: int = 2000
    disappear_timeout: int = 5000
    navigation_timeout: int = 30000
    poll_interval: int = 100
    highlight: bool = True
    highlight_duration: int = 300
    calendar_max_attempts: int = 24
    calendar_open_timeout: int = 2000
    calendar_step_timeout: int = 1000
    base_url: str = ""
    object_repository_path: Optional[str] = None
    test_data_path: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional["ConfigLoader"] = None) -> "EngineSettings":
        return (config or ConfigLoader()).engine_settings()


# EngineSettings field -> configuration key
SETTING_KEYS: Dict[str, str] = {
    "element_timeout": "ui.timeouts.element",
    "option_timeout": "ui.timeouts.option",
    "click_timeout": "ui.timeouts.click",
    "list_open_timeout": "ui.timeouts.list_open",
    "toggle_confirm_timeout": "ui.timeouts.toggle_confirm",
    "tooltip_timeout": "ui.timeouts.tooltip",
    "disappear_timeout": "ui.timeouts.disappear",
    "navigation_timeout": "ui.timeouts.navigation",
    "poll_interval": "ui.timeouts.poll_interval",
    "highlight": "ui.highlight",
    "highlight_duration": "ui.highlight_duration",
    "calendar_max_attempts": "calendar.max_attempts",
    "calendar_open_timeout": "calendar.open_timeout",
    "calendar_step_timeout": "calendar.step_timeout",
    "base_url": "ui.base_url",
    "object_repository_path": "object_repository.path",
    "test_data_path": "test_data.path",
}


class ConfigLoader:
    """
    Process-wide view of the engine configuration.

    Usage:
        >>> ConfigLoader().get("calendar.max_attempts", 24)
        24
        >>> ConfigLoader().engine_settings().element_timeout
        10000
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Args:
            config_path: YAML file to read; only honoured by the first
                construction after reset()
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
        self._load_config()
        self._initialized = True

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """Value at a dot path, environment first, then file, then `default`."""
        override = os.environ.get(key.upper().replace(".", "_"))
        if override is not None:
            return self._coerce(override, default)

        node: Any = self._config
        for part in key.split("."):
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                return default
        return node

    def engine_settings(self) -> EngineSettings:
        """EngineSettings from SETTING_KEYS; absent keys keep the dataclass defaults."""
        defaults = EngineSettings()
        values = {
            field.name: self.get(SETTING_KEYS[field.name], getattr(defaults, field.name))
            for field in fields(EngineSettings)
        }
        return EngineSettings(**values)

    def reload(self) -> None:
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded instance; the next ConfigLoader() reads again."""
        cls._instance = None
        cls._config = {}

    def _load_config(self) -> None:
        if not self._config_path.exists():
            logger.warning(f"No configuration file at {self._config_path}; using defaults")
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self._config_path}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self._config_path}")
        self._config = loaded
        logger.debug(f"Loaded configuration from: {self._config_path}")

    @staticmethod
    def _coerce(raw: str, reference: Any) -> Any:
        """Environment strings take the type of the default they replace."""
        if isinstance(reference, bool):
            return raw.lower() in _TRUE_WORDS
        for kind in (int, float):
            if isinstance(reference, kind):
                try:
                    return kind(raw)
                except ValueError:
                    logger.warning(f"Expected a number for a config override, got {raw!r}")
                    return raw
        return raw


__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "EngineSettings",
    "SETTING_KEYS",
]
