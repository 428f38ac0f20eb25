"""HTTP side of the bot.

Exposes the upload relay used by the static uploader page:

    POST /upload-media   multipart: uploadChannel, resultChannel, mediaFiles[]
    GET  /healthz

The app runs inside the same event loop as the Discord client (see
mediabot.main), so route handlers can call the Discord API directly.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mediabot import __version__
from mediabot.context import AppContext
from mediabot.errors import MediaBotError, MissingParameters, parse_error_message
from mediabot.relay.formatter import ResultFormatter
from mediabot.relay.media import MediaRelay, UploadRequest

from .uploads import stage_upload


def create_app(ctx: AppContext, relay: MediaRelay, formatter: ResultFormatter | None = None) -> FastAPI:
    formatter = formatter or ResultFormatter.from_config(ctx.config)
    http_cfg = ctx.config.get("http", {})
    max_file_size = ctx.config.get("upload", {}).get("max_file_size", 25 * 1024 * 1024)

    app = FastAPI(
        title="Discord Media Upload Bot",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.ctx = ctx
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=http_cfg.get("allowed_origins", []),
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(MediaBotError)
    async def media_bot_error_handler(request: Request, exc: MediaBotError) -> JSONResponse:
        logging.warning("❌ Upload rejected (%s): %s", request.url.path, parse_error_message(exc))
        return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"ok": True, "discord_ready": ctx.is_ready}

    @app.post("/upload-media")
    async def upload_media(
        upload_channel: str | None = Form(None, alias="uploadChannel"),
        result_channel: str | None = Form(None, alias="resultChannel"),
        media_files: list[UploadFile] | None = File(None, alias="mediaFiles"),
    ) -> Any:
        upload_channel = (upload_channel or "").strip()
        result_channel = (result_channel or "").strip()
        if not upload_channel or not result_channel:
            raise MissingParameters("Missing channel IDs")
        if not media_files:
            raise MissingParameters("No files were uploaded")

        try:
            async with ctx.workspaces.aworkspace() as workspace:
                staged = [
                    await stage_upload(workspace, i, f, max_file_size)
                    for i, f in enumerate(media_files)
                ]
                request = UploadRequest(
                    staging_destination_id=upload_channel,
                    result_destination_id=result_channel,
                    files=staged,
                )
                relayed = await relay.relay(request)
                output = formatter.format(relayed)
                await relay.publish(result_channel, output)
        except MediaBotError:
            raise
        except Exception as e:
            logging.exception("❌ Upload Error")
            return JSONResponse(status_code=500, content={"error": str(e) or "Upload failed"})

        return {
            "success": True,
            "count": len(relayed),
            "delivery": output.kind,
            "files": [{"name": f.name, "url": f.url} for f in formatter.sort(relayed)],
        }

    return app
