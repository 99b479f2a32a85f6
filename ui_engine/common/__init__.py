"""
================================================================================
UI Engine Common Utilities
================================================================================

Shared configuration management and logging setup.

Exports:
    - ConfigLoader: Singleton YAML + environment configuration
    - EngineSettings: Typed timeouts and bounds for the engine
    - init_logger / get_logger: Loguru setup

Usage:
    from ui_engine.common import EngineSettings, init_logger

    init_logger()
    settings = EngineSettings.from_config()

================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError, EngineSettings
from .global_config import get_logger, init_logger, reset_logger

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "EngineSettings",
    "init_logger",
    "get_logger",
    "reset_logger",
]
