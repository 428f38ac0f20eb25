from __future__ import annotations

import copy
import logging
import os
import sys
from typing import Any

import yaml
from dotenv import load_dotenv

from .validator import validate_config, ConfigValidationError


DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "CONFIG_PATH"

DEFAULTS: dict[str, Any] = {
    "bot_token": "",
    "client_id": None,
    "guild_id": None,
    "webpage_url": "",
    "youtube_api_key": "",
    "admin_ids": [],
    "http": {
        "host": "0.0.0.0",
        "port": 3000,
        "allowed_origins": [
            "https://0dlan2.github.io",
            "https://dmub-production.up.railway.app",
        ],
    },
    "upload": {
        "max_file_size": 25 * 1024 * 1024,
        "max_filename_length": None,
        "relay_timeout_seconds": 60,
        "workspace_root": None,
    },
    "formatting": {
        "max_message_length": 1900,
        "attachment_threshold": 1900,
        "attachment_filename": "upload_results.txt",
    },
    "playlist": {
        "page_size": 50,
        "chunk_delay_seconds": 1,
        "rate_limit_retry_seconds": 5,
        "request_timeout_seconds": 10,
    },
    "discord": {
        "arise_timeout_seconds": 600,
    },
}

# env var -> (section, key); section None means top level
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "Token_hh": (None, "bot_token"),
    "DISCORD_TOKEN": (None, "bot_token"),
    "CLIENT_ID": (None, "client_id"),
    "GUILD_ID": (None, "guild_id"),
    "WEBPAGE_URL": (None, "webpage_url"),
    "YOUTUBE_API_KEY": (None, "youtube_api_key"),
    "PORT": ("http", "port"),
}

_INT_KEYS = {"client_id", "guild_id", "port"}


def get_config_path() -> str:
    """
    Resolve the config path, preferring an explicit environment override.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    return DEFAULT_CONFIG_FILE


def _load_raw_config(path: str | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    try:
        with open(cfg_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        # The file is optional when everything comes from the environment,
        # but an explicitly requested one must exist.
        if path or os.environ.get(CONFIG_ENV_VAR):
            logging.error("Config file not found: %s", cfg_path)
            sys.exit(1)
        logging.info("No %s found, using defaults and environment", cfg_path)
        return {}
    except yaml.YAMLError as e:
        logging.error("YAML parsing error in %s: %s", cfg_path, e)
        sys.exit(1)

    if not isinstance(data, dict):
        logging.error("Config root must be a mapping, got %s", type(data).__name__)
        sys.exit(1)

    return data


def merge_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Layer file values over DEFAULTS, one level of nesting deep."""
    cfg = copy.deepcopy(DEFAULTS)
    for key, value in data.items():
        if isinstance(cfg.get(key), dict) and isinstance(value, dict):
            cfg[key] = {**cfg[key], **value}
        else:
            cfg[key] = value
    return cfg


def apply_env_overrides(cfg: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    env = os.environ if environ is None else environ
    for var, (section, key) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if not raw:
            continue
        value: Any = raw.strip()
        if key in _INT_KEYS:
            try:
                value = int(value)
            except ValueError:
                logging.warning("Ignoring non-numeric %s=%r", var, raw)
                continue
        target = cfg.setdefault(section, {}) if section else cfg
        target[key] = value
    return cfg


def get_config(path: str | None = None) -> dict[str, Any]:
    """
    Public helper for loading configuration.

    - Loads .env, then the YAML file (CONFIG_PATH if set).
    - Environment variables override file values.
    - Performs validation and exits with error code 1 if it fails.
    """
    load_dotenv()
    cfg_path = path or get_config_path()
    cfg = apply_env_overrides(merge_defaults(_load_raw_config(path)))

    try:
        validate_config(cfg, cfg_path)
    except ConfigValidationError:
        sys.exit(1)

    return cfg
