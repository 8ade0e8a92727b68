"""
Loading of the user configuration stored in `<config dir>/config.json`.

The file is created with defaults on first run. Keys on disk keep the camelCase
names users already have in their config files (`apiKey`, `baseURL`, ...).
"""

import json
import os

from dataclasses import dataclass, field
from typing import Dict, Optional

from loguru import logger

from .errors import ConfigError


PROVIDER_TYPES = ("OpenAI", "Custom", "Claude", "Gemini", "GitHub", "LlamaCpp")

CONFIG_FILE_NAME = "config.json"


@dataclass
class ContextConfig:
    enabled: bool = False
    max_history_commands: int = 10

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ContextConfig":
        # A non-object "context" (true, "on", ...) means the defaults.
        if not isinstance(data, dict):
            data = {}
        defaults = cls()
        return cls(
            enabled=bool(data.get("enabled", defaults.enabled)),
            max_history_commands=int(
                data.get("maxHistoryCommands", defaults.max_history_commands)
            ),
        )

    def to_dict(self) -> Dict:
        return {
            "enabled": self.enabled,
            "maxHistoryCommands": self.max_history_commands,
        }


@dataclass
class Config:
    """Merged view of defaults, config.json and the environment."""

    type: str = "OpenAI"
    model: str = "gpt-4.1"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    context: ContextConfig = field(default_factory=ContextConfig)
    # llama.cpp only
    context_size: Optional[int] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    threads: Optional[int] = None
    port: Optional[int] = None


DEFAULT_CONFIG = Config()


def default_config_template() -> Dict:
    """The content written to a freshly created config.json."""
    return {
        "type": DEFAULT_CONFIG.type,
        "model": DEFAULT_CONFIG.model,
        "context": ContextConfig().to_dict(),
        "apiKey": "",
        "baseURL": None,
    }


def get_config_dir() -> str:
    override = os.getenv("UWU_CONFIG_DIR")
    if override:
        return os.path.expanduser(override)

    base = os.getenv("XDG_CONFIG_HOME") or os.path.join(
        os.path.expanduser("~"), ".config"
    )
    return os.path.join(base, "uwu")


def create_config_file(config_dir: str, config_path: str):
    try:
        os.makedirs(config_dir, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as config_file:
            json.dump(default_config_template(), config_file, indent=2)
    except OSError as e:
        raise ConfigError(
            f"Error creating the configuration file at: {config_path}\n"
            "Please check your permissions for the directory.",
            config_path,
        ) from e
    logger.info("Created default configuration at {}", config_path)


def read_json(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as json_file:
        return json.load(json_file)


def merge_config(user_config: Dict) -> Config:
    """Overlays the values found in config.json on top of the defaults."""
    return Config(
        type=user_config.get("type", DEFAULT_CONFIG.type),
        model=user_config.get("model", DEFAULT_CONFIG.model),
        api_key=user_config.get("apiKey") or os.getenv("OPENAI_API_KEY"),
        base_url=user_config.get("baseURL"),
        context=ContextConfig.from_dict(user_config.get("context")),
        context_size=user_config.get("contextSize"),
        temperature=user_config.get("temperature"),
        max_tokens=user_config.get("maxTokens"),
        threads=user_config.get("threads"),
        port=user_config.get("port"),
    )


def get_config() -> Config:
    config_dir = get_config_dir()
    config_path = os.path.join(config_dir, CONFIG_FILE_NAME)

    if not os.path.exists(config_path):
        create_config_file(config_dir, config_path)
        return Config(api_key=os.getenv("OPENAI_API_KEY"))

    try:
        user_config = read_json(config_path)
        if not isinstance(user_config, dict):
            raise ValueError("top-level value is not an object")
        config = merge_config(user_config)
    except (OSError, ValueError, TypeError) as e:
        raise ConfigError(
            f"Error reading or parsing the configuration file at: {config_path}\n"
            "Please ensure it is a valid JSON file.",
            config_path,
        ) from e

    logger.debug("Loaded configuration from {} (provider={})", config_path, config.type)
    return config
