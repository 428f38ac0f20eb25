import logging

import discord
from discord.ext import commands

from mediabot.context import AppContext
from mediabot.youtube.importer import PlaylistImporter

from .commands import register_commands
from .errors import handle_app_command_error


def build_bot(ctx: AppContext, importer: PlaylistImporter | None = None) -> commands.Bot:
    intents = discord.Intents.default()
    activity = discord.CustomActivity(name="Relaying media · /bda")
    discord_bot = commands.Bot(intents=intents, activity=activity, command_prefix=None)

    importer = importer or PlaylistImporter.from_config(ctx.http_client, ctx.config)
    register_commands(discord_bot, ctx, importer)

    @discord_bot.tree.error
    async def on_app_command_error(interaction: discord.Interaction, error: Exception) -> None:
        await handle_app_command_error(interaction, error, discord_bot, ctx.config)

    @discord_bot.event
    async def on_ready() -> None:
        logging.info(f"🤖 Logged in as {discord_bot.user}")
        if ctx.is_ready:
            return
        if client_id := ctx.config.get("client_id"):
            logging.info(f"\n\nBOT INVITE URL:\nhttps://discord.com/oauth2/authorize?client_id={client_id}&permissions=52224&scope=bot+applications.commands\n")
        await sync_commands(discord_bot, ctx.config.get("guild_id"))
        ctx.mark_ready()

    return discord_bot


async def sync_commands(discord_bot: commands.Bot, guild_id: int | None = None) -> None:
    logging.info("🔁 Registering application commands...")
    try:
        if guild_id:
            guild = discord.Object(id=guild_id)
            discord_bot.tree.copy_global_to(guild=guild)
            synced = await discord_bot.tree.sync(guild=guild)
        else:
            synced = await discord_bot.tree.sync()
    except discord.HTTPException:
        logging.exception("❌ Failed to register commands")
        return
    logging.info(f"✅ Synced {len(synced)} slash commands")
