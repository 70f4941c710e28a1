from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/config.json"
DEFAULT_BATTERY_SENSOR_NAME = "Battery SCK"
DEFAULT_NAMESPACE = "smartcitizen"

DEFAULT_SMC_ENDPOINT = "https://api.smartcitizen.me"
DEFAULT_SMC_API_VERSION = "v0"
DEFAULT_USERNAME_ENV = "SMARTCITIZEN_USERNAME"
DEFAULT_PASSWORD_ENV = "SMARTCITIZEN_PASSWORD"
DEFAULT_TOKEN_ENV = "SMARTCITIZEN_TOKEN"

DEFAULT_NTFY_ENDPOINT = "https://ntfy.sh"
DEFAULT_NTFY_TOPIC = "your-ntfy-topic"
DEFAULT_NTFY_TOKEN_ENV = "NTFY_TOKEN"


@dataclass(frozen=True)
class SmartCitizenConfig:
    endpoint: str = DEFAULT_SMC_ENDPOINT
    api_version: str = DEFAULT_SMC_API_VERSION

    # Names of the env vars holding the credentials, not the credentials.
    username_env: str = DEFAULT_USERNAME_ENV
    password_env: str = DEFAULT_PASSWORD_ENV
    token_env: str = DEFAULT_TOKEN_ENV

    request_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class NtfyConfig:
    endpoint: str = DEFAULT_NTFY_ENDPOINT
    topic: str = DEFAULT_NTFY_TOPIC
    token_env: str = DEFAULT_NTFY_TOKEN_ENV


@dataclass(frozen=True)
class AppConfig:
    log_level: str = "INFO"
    dotenv_path: str = ""
    battery_sensor_name: str = DEFAULT_BATTERY_SENSOR_NAME
    namespace: str = DEFAULT_NAMESPACE
    poll_interval_seconds: float = 15.0
    port: int = 8080

    # sensor display name -> {"metric": ..., "category": ...}
    sensor_mapping: Dict[str, Dict[str, str]] = field(default_factory=dict)

    smartcitizen: SmartCitizenConfig = field(default_factory=SmartCitizenConfig)
    ntfy: NtfyConfig = field(default_factory=NtfyConfig)


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"config section '{key}' must be an object")
    # Empty strings mean "use the default", same as a missing key.
    return {k: v for k, v in value.items() if v not in ("", None)}


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """Build an AppConfig from a decoded JSON document, applying defaults."""
    if not isinstance(raw, dict):
        raise ConfigurationError("config root must be a JSON object")

    try:
        smc = SmartCitizenConfig(**_section(raw, "smartcitizen"))
        ntfy = NtfyConfig(**_section(raw, "ntfy"))
    except TypeError as e:
        raise ConfigurationError(f"unknown config key: {e}") from e

    top = {k: v for k, v in raw.items() if k not in ("smartcitizen", "ntfy") and v not in ("", None)}
    known = set(AppConfig.__dataclass_fields__) - {"smartcitizen", "ntfy"}
    unknown = set(top) - known
    if unknown:
        raise ConfigurationError(f"unknown config keys: {sorted(unknown)}")

    try:
        if "poll_interval_seconds" in top:
            top["poll_interval_seconds"] = float(top["poll_interval_seconds"])
        if "port" in top:
            top["port"] = int(top["port"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid numeric config value: {e}") from e

    if top.get("poll_interval_seconds", 1.0) <= 0:
        raise ConfigurationError("poll_interval_seconds must be positive")

    return AppConfig(smartcitizen=smc, ntfy=ntfy, **top)


def load_app_config(path: Optional[str] = None, dotenv_path: Optional[str] = None) -> AppConfig:
    """Load the JSON config file and the optional .env file.

    The config path falls back to SMC_CONFIG_PATH and then to
    configs/config.json. A missing default file yields the defaults; a
    missing explicit file is an error.
    """
    explicit = path or os.getenv("SMC_CONFIG_PATH")
    config_path = Path(explicit or DEFAULT_CONFIG_PATH)

    if config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"malformed config file {config_path}: {e}") from e
        config = parse_app_config(raw)
    elif explicit:
        raise ConfigurationError(f"config file not found: {config_path}")
    else:
        logger.info("[CONFIG] %s not found, using defaults", config_path)
        config = AppConfig()

    # Env file (if present) never overrides real environment variables.
    env_file = dotenv_path or config.dotenv_path or os.getenv("SMC_ENV_FILE", "")
    if env_file:
        if not Path(env_file).exists():
            raise ConfigurationError(f".env file not found: {env_file}")
        logger.info("[CONFIG] Loading .env file from %s", env_file)
        load_dotenv(env_file, override=False)

    return config
