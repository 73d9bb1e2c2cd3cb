"""
Utility modules for JudgeArena.

This module contains configuration and logging helpers shared by the
engine and the API layer.
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .logger_config import setup_logging, get_logger, ColoredFormatter, NoColorFormatter

__all__ = ["ConfigManager", "DEFAULT_CONFIG", "setup_logging", "get_logger", "ColoredFormatter", "NoColorFormatter"]
