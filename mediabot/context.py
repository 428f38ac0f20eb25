from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from mediabot.relay.workspace import WorkspaceManager


class AppContext:
    """State shared by the Discord handlers and the HTTP routes."""

    def __init__(
        self,
        config: dict[str, Any],
        workspaces: WorkspaceManager | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.workspaces = workspaces or WorkspaceManager(
            root=config.get("upload", {}).get("workspace_root")
        )
        self.http_client = http_client or httpx.AsyncClient()
        self._ready = asyncio.Event()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark_ready(self) -> None:
        if not self._ready.is_set():
            self._ready.set()
            logging.info("✅ Bot is ready")

    async def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait for readiness; returns False if the timeout expired first."""
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def aclose(self) -> None:
        await asyncio.to_thread(self.workspaces.sweep_all)
        await self.http_client.aclose()
