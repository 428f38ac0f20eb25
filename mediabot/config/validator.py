"""
Configuration validator for the merged config (file + environment).

Validates structure, required fields, and common misconfigurations.
"""

from __future__ import annotations

import logging
from typing import Any

from mediabot.relay.formatter import MAX_BODY_LENGTH


logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _check_positive_number(section: dict[str, Any], name: str, key: str, errors: list[str], *, allow_none: bool = False) -> None:
    if key not in section:
        return
    value = section[key]
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        errors.append(f"'{name}.{key}' must be a positive number, got {value!r}")


def validate_config(cfg: dict[str, Any], config_path: str = "config.yaml") -> None:
    """
    Validation of the merged configuration.

    Raises ConfigValidationError if validation fails.
    Logs detailed error messages before raising.

    Args:
        cfg: The merged config dictionary
        config_path: Path to config file (for error messages)

    Raises:
        ConfigValidationError: If validation fails
    """
    errors = []
    warnings = []

    # ── Check root structure ────────────────────────────────────────────────
    if not isinstance(cfg, dict):
        raise ConfigValidationError(f"Config root must be a mapping, got {type(cfg).__name__}")

    # ── Credentials ────────────────────────────────────────────────────────
    if not cfg.get("bot_token"):
        errors.append("Missing bot token: set 'bot_token' or the DISCORD_TOKEN environment variable")

    for key in ("client_id", "guild_id"):
        value = cfg.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            errors.append(f"'{key}' must be an integer id, got {type(value).__name__}")

    if not cfg.get("webpage_url"):
        warnings.append("'webpage_url' is empty; /bda will not have a link to share")

    if not cfg.get("youtube_api_key"):
        warnings.append("'youtube_api_key' is empty; /from_youtube will fail")

    admin_ids = cfg.get("admin_ids", [])
    if not isinstance(admin_ids, list):
        errors.append(f"'admin_ids' must be a list, got {type(admin_ids).__name__}")

    # ── Sections must be mappings ──────────────────────────────────────────
    for section_name in ("http", "upload", "formatting", "playlist", "discord"):
        section = cfg.get(section_name)
        if not isinstance(section, dict):
            errors.append(f"'{section_name}' must be a mapping, got {type(section).__name__}")

    # ── http ───────────────────────────────────────────────────────────────
    http = cfg.get("http")
    if isinstance(http, dict):
        port = http.get("port")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            errors.append(f"'http.port' must be an integer between 1 and 65535, got {port!r}")
        origins = http.get("allowed_origins", [])
        if not isinstance(origins, list):
            errors.append(f"'http.allowed_origins' must be a list, got {type(origins).__name__}")
        elif "*" in origins:
            warnings.append("'http.allowed_origins' contains '*'; any site can post uploads")

    # ── upload ─────────────────────────────────────────────────────────────
    upload = cfg.get("upload")
    if isinstance(upload, dict):
        _check_positive_number(upload, "upload", "max_file_size", errors)
        _check_positive_number(upload, "upload", "max_filename_length", errors, allow_none=True)
        _check_positive_number(upload, "upload", "relay_timeout_seconds", errors, allow_none=True)
        max_size = upload.get("max_file_size")
        if isinstance(max_size, int) and max_size > 25 * 1024 * 1024:
            warnings.append("'upload.max_file_size' is above Discord's default 25 MiB attachment limit")

    # ── formatting ─────────────────────────────────────────────────────────
    formatting = cfg.get("formatting")
    if isinstance(formatting, dict):
        _check_positive_number(formatting, "formatting", "max_message_length", errors)
        _check_positive_number(formatting, "formatting", "attachment_threshold", errors, allow_none=True)
        max_len = formatting.get("max_message_length")
        if isinstance(max_len, int) and max_len > MAX_BODY_LENGTH:
            errors.append(
                f"'formatting.max_message_length' must leave room for the result header "
                f"under Discord's 2000 character limit (at most {MAX_BODY_LENGTH}), got {max_len}"
            )
        if not formatting.get("attachment_filename"):
            errors.append("'formatting.attachment_filename' must be a non-empty string")

    # ── playlist ───────────────────────────────────────────────────────────
    playlist = cfg.get("playlist")
    if isinstance(playlist, dict):
        page_size = playlist.get("page_size")
        if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= 50:
            errors.append(f"'playlist.page_size' must be an integer between 1 and 50, got {page_size!r}")
        for key in ("chunk_delay_seconds", "rate_limit_retry_seconds"):
            value = playlist.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                errors.append(f"'playlist.{key}' must be a non-negative number, got {value!r}")
        _check_positive_number(playlist, "playlist", "request_timeout_seconds", errors)

    # ── discord ────────────────────────────────────────────────────────────
    discord_cfg = cfg.get("discord")
    if isinstance(discord_cfg, dict):
        _check_positive_number(discord_cfg, "discord", "arise_timeout_seconds", errors)

    # ── Log warnings ────────────────────────────────────────────────────────
    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    # ── Log errors and exit if any ──────────────────────────────────────────
    if errors:
        logger.error("=" * 70)
        logger.error("CONFIG VALIDATION FAILED (%s)", config_path)
        logger.error("=" * 70)
        for i, error in enumerate(errors, 1):
            logger.error("[%d] %s", i, error)
        logger.error("=" * 70)
        logger.error("Please fix the errors above and restart the bot.")
        logger.error("=" * 70)
        raise ConfigValidationError(f"Config validation failed with {len(errors)} error(s)")
