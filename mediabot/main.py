"""
Entrypoint: runs the Discord client and the upload HTTP server in one event loop.

    python -m mediabot.main
"""

import asyncio
import logging
import os
import signal
from typing import Any

import uvicorn

from mediabot.config.loader import get_config
from mediabot.context import AppContext
from mediabot.discord.client import build_bot
from mediabot.relay.media import MediaRelay
from mediabot.web.app import create_app

if os.environ.get("DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger("httpx").setLevel(logging.DEBUG)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s: %(message)s")


async def run_bot(config: dict[str, Any]) -> None:
    ctx = AppContext(config)
    discord_bot = build_bot(ctx)
    app = create_app(ctx, MediaRelay.from_config(discord_bot, config))

    http_cfg = config["http"]
    server = uvicorn.Server(
        uvicorn.Config(app, host=http_cfg["host"], port=http_cfg["port"], log_level="info")
    )

    async def start_discord() -> None:
        logging.info("🔗 Connecting to Discord...")
        try:
            await discord_bot.start(config["bot_token"])
        except Exception:
            logging.exception("❌ Login Failed")
            raise
        finally:
            server.should_exit = True

    logging.info(f"🌐 Server running on port {http_cfg['port']}")
    discord_task = asyncio.create_task(start_discord())
    try:
        await server.serve()
    finally:
        logging.info("🔴 Shutting down...")
        if not discord_bot.is_closed():
            await discord_bot.close()
        await asyncio.gather(discord_task, return_exceptions=True)
        await ctx.aclose()


def main() -> None:
    config = get_config()
    # SIGTERM (container stop) takes the same path as Ctrl+C so workspaces get swept.
    signal.signal(signal.SIGTERM, signal.default_int_handler)
    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
