"""
Request-scoped scratch directories.

Every upload request gets its own directory under the OS temp root. The
manager keeps track of every directory it handed out so that a shutdown
signal can sweep whatever a crashed or interrupted request left behind.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator


logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "mediabot-"


@dataclass(frozen=True)
class Workspace:
    path: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class WorkspaceManager:
    def __init__(self, root: str | Path | None = None, prefix: str = WORKSPACE_PREFIX):
        self.root = Path(root) if root else None
        self.prefix = prefix
        self._active: dict[str, Workspace] = {}

    def __len__(self) -> int:
        return len(self._active)

    @property
    def active(self) -> list[Workspace]:
        return list(self._active.values())

    def acquire(self) -> Workspace:
        if self.root:
            self.root.mkdir(parents=True, exist_ok=True)
        # mkdtemp picks a random suffix and creates the directory atomically
        path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        workspace = Workspace(path=path)
        self._active[str(path)] = workspace
        logger.debug("Workspace acquired: %s", path)
        return workspace

    def release(self, workspace: Workspace) -> None:
        """
        Remove the directory tree and forget it. Safe to call repeatedly.

        A workspace that could not be removed stays tracked so sweep_all
        retries it.
        """
        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove workspace %s: %s", workspace.path, e)
            return
        else:
            logger.debug("Workspace released: %s", workspace.path)
        self._active.pop(str(workspace.path), None)

    async def arelease(self, workspace: Workspace) -> None:
        # rmtree blocks, and this loop also drives the Discord gateway
        await asyncio.to_thread(self.release, workspace)

    def sweep_all(self) -> int:
        """Release every tracked workspace; returns how many were swept."""
        leftovers = list(self._active.values())
        for workspace in leftovers:
            self.release(workspace)
        if leftovers:
            logger.info("🧹 Swept %d leftover workspace(s)", len(leftovers))
        return len(leftovers)

    @asynccontextmanager
    async def aworkspace(self) -> AsyncIterator[Workspace]:
        workspace = await asyncio.to_thread(self.acquire)
        try:
            yield workspace
        finally:
            await self.arelease(workspace)
