"""
Media relay: re-sends uploaded files to a staging channel so that Discord
hosts them, and collects the resulting CDN URL for every file.
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import discord

from mediabot.errors import (
    FilenameTooLong,
    InvalidDestination,
    MediaBotError,
    MissingParameters,
    RelayTimeout,
)
from .formatter import FormattedOutput, RelayedFile


@dataclass(frozen=True)
class StagedFile:
    original_name: str
    path: Path
    size: int


@dataclass
class UploadRequest:
    staging_destination_id: str
    result_destination_id: str
    files: list[StagedFile] = field(default_factory=list)


class MediaRelay:
    def __init__(
        self,
        client: discord.Client,
        max_filename_length: int | None = None,
        relay_timeout: float | None = 60,
    ):
        self.client = client
        self.max_filename_length = max_filename_length
        self.relay_timeout = relay_timeout

    @classmethod
    def from_config(cls, client: discord.Client, config: dict[str, Any]) -> "MediaRelay":
        upload = config.get("upload", {})
        return cls(
            client,
            max_filename_length=upload.get("max_filename_length"),
            relay_timeout=upload.get("relay_timeout_seconds", 60),
        )

    # ── Destinations ────────────────────────────────────────────────────────

    async def resolve_destination(self, destination_id: str) -> discord.abc.Messageable:
        """Look up a channel id and make sure messages can be sent to it."""
        try:
            channel_id = int(str(destination_id).strip())
        except ValueError:
            raise InvalidDestination(f"Invalid channel ID: {destination_id!r}") from None

        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.InvalidData as e:
                raise InvalidDestination(f"Channel {channel_id} is of an unknown type") from e
            except discord.HTTPException as e:
                if e.status in (400, 403, 404):
                    raise InvalidDestination(f"Channel {channel_id} not found or not accessible") from e
                raise

        if not isinstance(channel, discord.abc.Messageable):
            raise InvalidDestination(f"Channel {channel_id} is not a text channel")
        return channel

    # ── Relay ───────────────────────────────────────────────────────────────

    def check_filenames(self, files: list[StagedFile]) -> None:
        if not self.max_filename_length:
            return
        for staged in files:
            if len(staged.original_name) > self.max_filename_length:
                raise FilenameTooLong(
                    f"Filename too long ({len(staged.original_name)} > {self.max_filename_length}): "
                    f"{staged.original_name[:40]}..."
                )

    async def relay(self, request: UploadRequest) -> list[RelayedFile]:
        """
        Send every staged file to the staging channel and return (name, url) pairs.

        Both channels are validated before anything is sent. All sends run
        concurrently; the first failure cancels the sends still in flight and
        propagates. Files that already reached Discord stay there.
        """
        if not request.files:
            raise MissingParameters("No files were uploaded")
        self.check_filenames(request.files)

        staging = await self.resolve_destination(request.staging_destination_id)
        await self.resolve_destination(request.result_destination_id)

        logging.info(
            "📤 Relaying %d file(s) to channel %s", len(request.files), request.staging_destination_id
        )
        tasks = [asyncio.create_task(self._relay_one(staging, staged)) for staged in request.files]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _relay_one(self, channel: discord.abc.Messageable, staged: StagedFile) -> RelayedFile:
        file = discord.File(staged.path, filename=staged.original_name)
        try:
            message = await asyncio.wait_for(channel.send(file=file), timeout=self.relay_timeout)
        except asyncio.TimeoutError:
            raise RelayTimeout(
                f"Timed out relaying {staged.original_name} after {self.relay_timeout}s"
            ) from None
        finally:
            file.close()

        if not message.attachments:
            raise MediaBotError(f"Discord returned no attachment for {staged.original_name}")
        return RelayedFile(name=staged.original_name, url=message.attachments[0].url)

    # ── Results ─────────────────────────────────────────────────────────────

    async def publish(self, destination_id: str, output: FormattedOutput) -> None:
        """Post the formatted listing into the result channel."""
        channel = await self.resolve_destination(destination_id)
        if output.kind == "attachment":
            await channel.send(
                content=output.messages[0] if output.messages else None,
                file=discord.File(io.BytesIO(output.data or b""), filename=output.filename),
            )
        else:
            for message in output.messages:
                await channel.send(message)
        logging.info("📬 Posted %d result(s) to channel %s", output.count, destination_id)
