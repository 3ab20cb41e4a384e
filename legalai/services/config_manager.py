"""
Configuration Manager - Relay and client settings
Defaults, overlaid by config.json, overlaid by environment variables
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "GROQ_API_KEY": ("groq", "apiKey"),
    "LEGALAI_MODEL": ("groq", "model"),
    "LEGALAI_UPSTREAM_URL": ("groq", "url"),
    "LEGALAI_ENDPOINT": ("client", "endpoint"),
}


class ConfigManager:
    """Load configuration; reloaded on every read so env changes apply per request"""

    _instance = None

    def __init__(self, config_dir: str | os.PathLike | None = None):
        if config_dir is None:
            config_dir = os.environ.get("LEGALAI_CONFIG_DIR") or Path.home() / ".legalai"
        self._config_file = Path(config_dir) / "config.json"
        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    @property
    def config_file(self) -> Path:
        return self._config_file

    def _load_config(self) -> dict[str, Any]:
        """Merge defaults, the config file (if any) and the environment"""
        config = self._default_config()

        if self._config_file.exists():
            try:
                with open(self._config_file, encoding="utf-8") as f:
                    stored = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self._config_file, e)
                stored = {}
            if not isinstance(stored, dict):
                logger.warning("Ignoring config %s: top level is not an object", self._config_file)
                stored = {}
            for section, values in stored.items():
                if isinstance(config.get(section), dict):
                    if isinstance(values, dict):
                        config[section].update(values)
                    else:
                        logger.warning("Ignoring config section %r: not an object", section)
                else:
                    config[section] = values

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config[section][key] = value

        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "groq": {
                "apiKey": "",
                "url": "https://api.groq.com/openai/v1/chat/completions",
                "model": "llama-3.3-70b-versatile",
                "maxTokens": 2048,
                "temperature": 0.7,
                "connectTimeout": 10,
                "readTimeout": 60,
            },
            "server": {"host": "0.0.0.0", "port": 8000},
            "client": {
                "endpoint": "http://127.0.0.1:8000/api/legal-chat",
                "apiKey": "",
                "connectTimeout": 10,
                "readTimeout": 90,
            },
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def get(self, key: str, default=None):
        """Get a top-level config section"""
        return copy.deepcopy(self.get_config().get(key, default))


def mask_key(key: str) -> str:
    """Hide all but the first and last four characters of a secret"""
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]
