"""
mediabot/youtube/importer.py

Imports a YouTube playlist through the Data API v3 `playlistItems` endpoint
and posts it into a Discord channel as "<title>: <link>" lines.

Entry points:
  PlaylistImporter.fetch(url)            -> list[PlaylistEntry]  (sorted)
  PlaylistImporter.stream(channel, ...)  -> number of messages sent
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

import discord
import httpx

from mediabot.errors import InvalidPlaylistUrl, UpstreamApiError
from mediabot.relay.formatter import chunk_lines, natural_key


YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3/playlistItems"
WATCH_URL = "https://youtu.be"

_PLAYLIST_URL = re.compile(
    r"^(?:https?://)?(?:(?:www|m|music)\.)?(?:youtube\.com|youtu\.be)/\S*?[?&]list=([A-Za-z0-9_-]+)",
    re.IGNORECASE,
)


def extract_playlist_id(url: str) -> str:
    match = _PLAYLIST_URL.match((url or "").strip())
    if not match:
        raise InvalidPlaylistUrl(f"Not a YouTube playlist URL: {url}")
    return match.group(1)


@dataclass(frozen=True)
class PlaylistEntry:
    title: str
    external_id: str

    def render(self) -> str:
        return f"{self.title}: {WATCH_URL}/{self.external_id}"


def render_entries(entries: Iterable[PlaylistEntry]) -> list[str]:
    return [entry.render() for entry in entries]


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200] or response.reason_phrase or f"HTTP {response.status_code}"


class PlaylistImporter:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        *,
        page_size: int = 50,
        rate_limit_retry_seconds: float = 5,
        chunk_delay_seconds: float = 1,
        max_message_length: int = 1900,
        request_timeout: float = 10,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.http_client = http_client
        self.api_key = api_key
        self.page_size = page_size
        self.rate_limit_retry_seconds = rate_limit_retry_seconds
        self.chunk_delay_seconds = chunk_delay_seconds
        self.max_message_length = max_message_length
        self.request_timeout = request_timeout
        self._sleep = sleep

    @classmethod
    def from_config(cls, http_client: httpx.AsyncClient, config: dict[str, Any]) -> "PlaylistImporter":
        playlist = config.get("playlist", {})
        return cls(
            http_client,
            config.get("youtube_api_key", ""),
            page_size=playlist.get("page_size", 50),
            rate_limit_retry_seconds=playlist.get("rate_limit_retry_seconds", 5),
            chunk_delay_seconds=playlist.get("chunk_delay_seconds", 1),
            max_message_length=config.get("formatting", {}).get("max_message_length", 1900),
            request_timeout=playlist.get("request_timeout_seconds", 10),
        )

    # ── Retrieval ───────────────────────────────────────────────────────────

    async def fetch(self, playlist_url: str) -> list[PlaylistEntry]:
        playlist_id = extract_playlist_id(playlist_url)
        if not self.api_key:
            raise UpstreamApiError("YouTube API key is not configured")

        entries: list[PlaylistEntry] = []
        page_token: str | None = None
        pages = 0
        while True:
            data = await self._fetch_page(playlist_id, page_token)
            pages += 1
            for item in data.get("items", []):
                snippet = item.get("snippet") or {}
                video_id = (snippet.get("resourceId") or {}).get("videoId")
                if not video_id:
                    continue
                entries.append(PlaylistEntry(title=snippet.get("title", ""), external_id=video_id))
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logging.info("📺 Playlist %s: %d entries over %d page(s)", playlist_id, len(entries), pages)
        return sorted(entries, key=lambda e: natural_key(e.title))

    async def _fetch_page(self, playlist_id: str, page_token: str | None) -> dict[str, Any]:
        params = {
            "part": "snippet",
            "maxResults": self.page_size,
            "playlistId": playlist_id,
            "key": self.api_key,
        }
        if page_token:
            params["pageToken"] = page_token

        retried = False
        while True:
            try:
                response = await self.http_client.get(
                    YOUTUBE_API_URL, params=params, timeout=self.request_timeout
                )
            except httpx.HTTPError as e:
                raise UpstreamApiError(f"YouTube API request failed: {e}") from e

            if response.status_code == 429 and not retried:
                retried = True
                logging.warning(
                    "YouTube API rate-limited, retrying in %ss", self.rate_limit_retry_seconds
                )
                await self._sleep(self.rate_limit_retry_seconds)
                continue

            if response.is_error:
                raise UpstreamApiError(_error_message(response), status=response.status_code)

            try:
                return response.json()
            except ValueError as e:
                raise UpstreamApiError("YouTube API returned invalid JSON") from e

    # ── Delivery ────────────────────────────────────────────────────────────

    async def stream(self, channel: discord.abc.Messageable, entries: list[PlaylistEntry]) -> int:
        """Send entries in size-bounded messages, pausing between sends."""
        chunks = chunk_lines(render_entries(entries), self.max_message_length)
        for i, chunk in enumerate(chunks):
            if i:
                await self._sleep(self.chunk_delay_seconds)
            await channel.send("\n".join(chunk))
        return len(chunks)
