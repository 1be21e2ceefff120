"""Discord delivery of boss alerts and live timer displays."""

import logging
from typing import List, Optional

import discord

from .errors import DestinationUnavailable
from .models import LiveDisplayBinding, NotificationRequest, TimerSnapshot
from .view import TimerView


logger = logging.getLogger(__name__)


class NotificationManager:
    """Sends alerts to guild channels and edits live timer messages."""

    def __init__(self, bot):
        self.bot = bot
        self.view = TimerView()

    def _get_channel(self, guild_id: str, channel_id: str):
        """Resolve a text channel from cache or raise DestinationUnavailable."""
        guild = self.bot.get_guild(int(guild_id))
        if guild is None:
            raise DestinationUnavailable(f"Guild {guild_id} is not available")

        channel = guild.get_channel(int(channel_id))
        if channel is None or not isinstance(channel, discord.abc.Messageable):
            raise DestinationUnavailable(f"Channel {channel_id} in guild {guild_id} is not available")
        return channel

    async def deliver(self, request: NotificationRequest) -> None:
        """Send a warning or ready alert to the timer's channel."""
        timer = request.timer
        channel = self._get_channel(timer.guild_id, timer.channel_id)

        content = f"<@&{request.mention_role}>" if request.mention_role else None
        try:
            await channel.send(
                content=content,
                embed=self.view.format_notification(request),
                allowed_mentions=discord.AllowedMentions(roles=True)
            )
        except (discord.Forbidden, discord.NotFound) as e:
            raise DestinationUnavailable(f"Cannot send to channel {timer.channel_id}: {e}") from e

        logger.debug(f"Sent {request.kind} alert for {request.boss.id} to channel {timer.channel_id}")

    async def resolve_display(self, binding: LiveDisplayBinding) -> Optional[discord.Message]:
        """Fetch the message behind a live display, or None if it was deleted."""
        channel = self._get_channel(binding.guild_id, binding.channel_id)
        try:
            return await channel.fetch_message(int(binding.message_id))
        except discord.NotFound:
            return None
        except discord.Forbidden as e:
            raise DestinationUnavailable(f"No access to channel {binding.channel_id}: {e}") from e

    async def update_status_display(self, message: discord.Message, snapshot: TimerSnapshot) -> None:
        await message.edit(embed=self.view.format_status(snapshot, live=True))

    async def update_group_display(self, message: discord.Message, snapshots: List[TimerSnapshot]) -> None:
        await message.edit(embed=self.view.format_group(snapshots))
