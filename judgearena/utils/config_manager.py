"""
Configuration management for the JudgeArena server.

Precedence (lowest to highest): built-in defaults, JSON configuration
file, ``JUDGEARENA_*`` environment variables, explicit ``set`` calls.
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from .logger_config import get_logger

logger = get_logger("config_manager")


DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
        "cors_origins": ["http://localhost:3000"],
    },
    "log": {
        "level": "INFO",
        "dir": "logs",
        "enable_colors": True,
    },
    "db": {
        "path": "data/contest.duckdb",
    },
    "sandbox": {
        "base_dir": "sandbox",
        "docker_binary": "docker",
        "docker_image": "c-judge-env",
        "container_workdir": "/app",
        "source_filename": "main.c",
        "artifact_filename": "main.out",
        "input_filename": "input.txt",
        "compile_command": "gcc main.c -o main.out && chmod +x main.out",
        "compile_timeout_s": 5,
        "run_timeout_s": 2,
        "memory_mb": 64,
        "pids_limit": 64,
        "max_output_bytes": 1048576,
    },
    "scoring": {
        "points_per_problem": 100,
    },
    "auth": {
        "jwt_secret": "change-this-contest-secret",
        "jwt_algorithm": "HS256",
        "token_expires_minutes": 180,
        "admin_user": "admin",
        "admin_password": "admin",
        "participant_password": "contest",
    },
}


class ConfigManager:
    """Centralized configuration management for the JudgeArena server"""

    ENV_MAPPINGS = {
        "JUDGEARENA_HOST": ("server", "host"),
        "JUDGEARENA_PORT": ("server", "port"),
        "JUDGEARENA_CORS_ORIGINS": ("server", "cors_origins"),
        "JUDGEARENA_LOG_LEVEL": ("log", "level"),
        "JUDGEARENA_LOG_DIR": ("log", "dir"),
        "JUDGEARENA_DB_PATH": ("db", "path"),
        "JUDGEARENA_SANDBOX_DIR": ("sandbox", "base_dir"),
        "JUDGEARENA_DOCKER_IMAGE": ("sandbox", "docker_image"),
        "JUDGEARENA_COMPILE_TIMEOUT": ("sandbox", "compile_timeout_s"),
        "JUDGEARENA_RUN_TIMEOUT": ("sandbox", "run_timeout_s"),
        "JUDGEARENA_MEMORY_MB": ("sandbox", "memory_mb"),
        "JUDGEARENA_MAX_OUTPUT_BYTES": ("sandbox", "max_output_bytes"),
        "JUDGEARENA_POINTS_PER_PROBLEM": ("scoring", "points_per_problem"),
        "JUDGEARENA_JWT_SECRET": ("auth", "jwt_secret"),
        "JUDGEARENA_ADMIN_USER": ("auth", "admin_user"),
        "JUDGEARENA_ADMIN_PASSWORD": ("auth", "admin_password"),
        "JUDGEARENA_PARTICIPANT_PASSWORD": ("auth", "participant_password"),
    }

    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager

        Args:
            config_path: Path to configuration file (optional)
            overrides: Nested dictionary applied after file and environment
        """
        self.config_path = config_path or "config/server_config.json"
        self._config: Dict[str, Any] = {}
        self._load_config()
        if overrides:
            self._merge_config(overrides)

    def _load_config(self) -> None:
        """Load configuration from defaults, file and environment variables"""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                self._merge_config(file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load config file {self.config_path}: {e}")

        self._load_from_env()

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Recursively merge a configuration dictionary into the current one"""
        def merge_dict(target: Dict[str, Any], source: Dict[str, Any]) -> None:
            for key, value in source.items():
                if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                    merge_dict(target[key], value)
                else:
                    target[key] = value

        merge_dict(self._config, new_config)

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                self._set_nested_value(config_path, self._parse_env_value(value))

    def _set_nested_value(self, path: tuple, value: Any) -> None:
        current = self._config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type"""
        if value.lower() in ('true', 'yes', 'on'):
            return True
        if value.lower() in ('false', 'no', 'off'):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        # Comma-separated lists
        if ',' in value:
            return [item.strip() for item in value.split(',')]

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            key: Configuration key (e.g., "sandbox.run_timeout_s")
            default: Default value if key not found
        """
        current = self._config
        for k in key.split('.'):
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                return default
        return current

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation"""
        keys = key.split('.')
        current = self._config
        for k in keys[:-1]:
            if k not in current:
                current[k] = {}
            current = current[k]
        current[keys[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get a copy of an entire configuration section"""
        return copy.deepcopy(self._config.get(section, {}))

