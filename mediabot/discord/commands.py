import logging

import discord
from discord import app_commands
from discord.ext import commands

from mediabot.context import AppContext
from mediabot.errors import MediaBotError, error_messages
from mediabot.youtube.importer import PlaylistImporter


ARISE_READY = "⚡ Ready! Type `/bda` to start"
ARISE_WAKING = "💤 Waking up... Please wait"
ARISE_DONE = "✅ Ready now!"
ARISE_STILL_WAKING = "⏳ Still waking up, try `/arise` again in a moment."


# ── Handlers ────────────────────────────────────────────────────────────────

async def bda(ctx: AppContext, interaction: discord.Interaction) -> None:
    await interaction.response.send_message(f"🔗 Configuration page: {ctx.config.get('webpage_url', '')}")


async def channel_id(ctx: AppContext, interaction: discord.Interaction, channel: discord.abc.GuildChannel) -> None:
    await interaction.response.send_message(f"📡 ID for {channel.mention}: `{channel.id}`")


async def arise(ctx: AppContext, interaction: discord.Interaction) -> None:
    if ctx.is_ready:
        await interaction.response.send_message(ARISE_READY)
        return

    await interaction.response.send_message(ARISE_WAKING)
    timeout = ctx.config.get("discord", {}).get("arise_timeout_seconds", 600)
    if await ctx.wait_ready(timeout):
        await interaction.followup.send(ARISE_DONE)
    else:
        await interaction.followup.send(ARISE_STILL_WAKING)


async def from_youtube(
    ctx: AppContext,
    importer: PlaylistImporter,
    interaction: discord.Interaction,
    url: str,
) -> None:
    await interaction.response.defer(thinking=True)
    try:
        entries = await importer.fetch(url)
        if not entries:
            await interaction.followup.send("📭 That playlist has no videos.")
            return
        await importer.stream(interaction.channel, entries)
    except MediaBotError as e:
        admin_msg, user_msg = error_messages(e)
        logging.warning("from_youtube failed for %s: %s", url, admin_msg)
        await interaction.followup.send(f"❌ {user_msg}")
        return

    logging.info("📺 Imported %d video(s) into #%s", len(entries), getattr(interaction.channel, "name", "DM"))
    await interaction.followup.send(f"✅ Imported {len(entries)} video{'s' if len(entries) != 1 else ''} from the playlist")


# ── Registration ────────────────────────────────────────────────────────────

def register_commands(bot: commands.Bot, ctx: AppContext, importer: PlaylistImporter) -> None:
    @bot.tree.command(name="bda", description="Get bot configuration link")
    async def bda_command(interaction: discord.Interaction) -> None:
        await bda(ctx, interaction)

    @bot.tree.command(name="channel_id", description="Get a channel ID")
    @app_commands.describe(channel="Target channel")
    async def channel_id_command(interaction: discord.Interaction, channel: discord.abc.GuildChannel) -> None:
        await channel_id(ctx, interaction, channel)

    @bot.tree.command(name="arise", description="Wake up the bot from standby")
    async def arise_command(interaction: discord.Interaction) -> None:
        await arise(ctx, interaction)

    @bot.tree.command(name="from_youtube", description="Import a YouTube playlist into this channel")
    @app_commands.describe(url="YouTube playlist URL")
    async def from_youtube_command(interaction: discord.Interaction, url: str) -> None:
        await from_youtube(ctx, importer, interaction, url)
