from __future__ import annotations

from typing import Tuple


class MediaBotError(Exception):
    """Base error for relay, formatting and import failures."""

    status_code = 500

    @property
    def user_message(self) -> str:
        return str(self) or type(self).__name__


class MissingParameters(MediaBotError):
    status_code = 400


class InvalidDestination(MediaBotError):
    status_code = 400


class FileTooLarge(MediaBotError):
    status_code = 413


class FilenameTooLong(MediaBotError):
    status_code = 400


class EntryTooLarge(MediaBotError):
    pass


class RelayTimeout(MediaBotError):
    pass


class InvalidPlaylistUrl(MediaBotError):
    status_code = 400


class UpstreamApiError(MediaBotError):
    status_code = 502

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def parse_error_message(error: Exception) -> str:
    """
    Map raw exceptions into short, human-readable messages.
    Used for admin notifications and logs.
    """
    s, t = str(error), type(error).__name__
    if isinstance(error, UpstreamApiError):
        if error.status == 429:
            return "⚠️ Rate Limited: YouTube API is temporarily rate-limited. Please retry shortly."
        if error.status == 403:
            return f"❌ Forbidden: YouTube API refused the request ({s})."
        return f"❌ Upstream API Error: {s}"
    if isinstance(error, MediaBotError):
        return f"⚠️ {t}: {s}"
    if "401" in s or "Unauthorized" in s:
        return "❌ Authentication Error: Invalid bot token or API key."
    if "404" in s or t == "NotFound":
        return "❌ Not Found: The requested resource was not found."
    if "403" in s or t == "Forbidden":
        return "❌ Forbidden: The bot doesn't have permission to access this resource."
    if "Connection" in t or "ECONNREFUSED" in s or "ETIMEDOUT" in s:
        return "❌ Connection Error: Unable to reach the upstream service."
    return f"❌ {t}: {s.split(chr(10))[0][:100]}"


def format_user_friendly_error(error: Exception) -> str:
    """
    Short, safe error message suitable for end users.
    """
    if isinstance(error, MediaBotError):
        return error.user_message
    return "⚠️ An error occurred"


def error_messages(error: Exception) -> Tuple[str, str]:
    """
    Convenience helper returning (admin_message, user_message).
    """
    return parse_error_message(error), format_user_friendly_error(error)
