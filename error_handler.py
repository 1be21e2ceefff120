"""Error handling and owner notification for the field boss bot."""

import logging
import traceback
from datetime import timedelta

import discord
from discord import app_commands
from discord.ext import commands

from fieldboss.errors import FieldBossError, PersistenceFailure
from fieldboss.view import TimerView


logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling and notification system."""

    def __init__(self, bot: commands.Bot, owner_id: int):
        self.bot = bot
        self.owner_id = owner_id
        self.error_counts = {}
        self.last_notification = {}
        self.notification_cooldown = 300  # 5 minutes between same error types
        self.view = TimerView()

    async def notify_owner(self, title: str, description: str, error: Exception = None):
        """Send a DM notification to the bot owner."""
        if not self.owner_id:
            return

        try:
            owner = self.bot.get_user(self.owner_id)
            if not owner:
                owner = await self.bot.fetch_user(self.owner_id)

            embed = discord.Embed(
                title=f"🚨 {title}",
                description=description,
                color=0xff0000,
                timestamp=discord.utils.utcnow()
            )

            if error:
                embed.add_field(
                    name="Error Details",
                    value=f"```{str(error)[:1000]}```",
                    inline=False
                )

                tb = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
                if len(tb) > 1000:
                    tb = tb[-1000:]  # Last 1000 chars
                embed.add_field(
                    name="Traceback",
                    value=f"```{tb}```",
                    inline=False
                )

            embed.set_footer(text="Field Boss Bot Error Handler")

            await owner.send(embed=embed)
            logger.info(f"Sent error notification to owner: {title}")

        except Exception as e:
            logger.error(f"Failed to send error notification: {e}")

    def _should_notify(self, error_type: str) -> bool:
        """Count an error and check the per-type notification cooldown."""
        now = discord.utils.utcnow()
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1

        last = self.last_notification.get(error_type)
        if last is None or now - last > timedelta(seconds=self.notification_cooldown):
            self.last_notification[error_type] = now
            return True
        return False

    async def handle_interaction_error(self, interaction: discord.Interaction, error: Exception):
        """Handle slash command and component interaction errors."""
        if isinstance(error, app_commands.CommandInvokeError):
            error = error.original

        command_name = interaction.command.name if interaction.command else "component"
        error_type = type(error).__name__

        # Known user-facing errors are answered directly
        if isinstance(error, FieldBossError) and not isinstance(error, PersistenceFailure):
            logger.info(f"{error_type} in {command_name}: {error}")
            await self._reply(interaction, self.view.format_error(error.user_message))
            return

        logger.error(f"Interaction error in {command_name}: {error}", exc_info=error)

        if self._should_notify(error_type):
            user = f"{interaction.user.display_name} ({interaction.user.id})"
            guild = f"{interaction.guild.name} ({interaction.guild.id})" if interaction.guild else "DM"

            description = (
                f"**Command:** /{command_name}\n"
                f"**User:** {user}\n"
                f"**Guild:** {guild}\n"
                f"**Error Count:** {self.error_counts[error_type]} (since restart)"
            )
            await self.notify_owner(f"Slash Command Error: {error_type}", description, error)

        message = "An error occurred while processing your command. The bot owner has been notified."
        if isinstance(error, PersistenceFailure):
            message = error.user_message
        elif isinstance(error, discord.errors.NotFound) and "10062" in str(error):
            message = "⏱️ The command took too long to process. Please try again."
        elif isinstance(error, app_commands.MissingPermissions):
            message = "🔒 You don't have permission to use this command."

        await self._reply(interaction, self.view.format_error(message, title="❌ Command Error"))

    async def _reply(self, interaction: discord.Interaction, embed: discord.Embed):
        try:
            if not interaction.response.is_done():
                await interaction.response.send_message(embed=embed, ephemeral=True)
            else:
                await interaction.followup.send(embed=embed, ephemeral=True)
        except discord.HTTPException as followup_error:
            logger.error(f"Failed to send error message to user: {followup_error}")

    async def send_startup_notification(self):
        """Send notification when bot starts successfully."""
        if not self.owner_id:
            return

        try:
            owner = self.bot.get_user(self.owner_id) or await self.bot.fetch_user(self.owner_id)

            embed = discord.Embed(
                title="✅ Field Boss Bot Started",
                description=f"Bot is online and ready in {len(self.bot.guilds)} guild(s)",
                color=0x00ff00,
                timestamp=discord.utils.utcnow()
            )

            await owner.send(embed=embed)
            logger.info("Sent startup notification to owner")

        except Exception as e:
            logger.error(f"Failed to send startup notification: {e}")
