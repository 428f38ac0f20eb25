"""Helpers for writing multipart parts into a request workspace.

Parts are streamed to disk in chunks so that the size cap is enforced
without holding a whole 25 MiB file in memory.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import UploadFile

from mediabot.errors import FileTooLarge
from mediabot.relay.media import StagedFile
from mediabot.relay.workspace import Workspace


DEFAULT_CHUNK_SIZE = 1_048_576  # 1 MiB


def format_size(size: int) -> str:
    for unit in ("Bytes", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}"
        size /= 1024
    return f"{size:.0f} GB"


async def stage_upload(
    workspace: Workspace,
    index: int,
    file: UploadFile,
    max_size: int,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StagedFile:
    """Stream one UploadFile into the workspace.

    The on-disk name is derived from the part index so client-supplied
    names never touch the filesystem; the original name is kept on the
    returned StagedFile for display.

    Raises:
        FileTooLarge: if the part is bigger than max_size.
    """
    original_name = (file.filename or "").strip() or f"file-{index + 1}"
    if file.size is not None and file.size > max_size:
        raise FileTooLarge(f"File too large: {original_name} ({format_size(file.size)})")

    suffix = Path(original_name).suffix[:16]
    dest = workspace.path / f"{index:04d}{suffix}"
    written = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = await file.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size:
                    raise FileTooLarge(f"File too large: {original_name} (over {format_size(max_size)})")
                await asyncio.to_thread(out.write, chunk)
    finally:
        await file.close()

    return StagedFile(original_name=original_name, path=dest, size=written)
