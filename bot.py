"""Main entry point for the Field Boss Timer Discord bot."""

import os
import sys
import asyncio
import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

from error_handler import ErrorHandler

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('field_boss.log')
    ]
)
logger = logging.getLogger(__name__)


class MissingConfiguration(RuntimeError):
    """A required environment variable is not set."""


def load_env():
    """Load the bot credentials from the environment or .env file."""
    load_dotenv()

    token = os.getenv('DISCORD_TOKEN')
    client_id = os.getenv('CLIENT_ID')

    missing = [name for name, value in (('DISCORD_TOKEN', token), ('CLIENT_ID', client_id)) if not value]
    if missing:
        raise MissingConfiguration(f"{', '.join(missing)} is required in the environment or .env file")

    return token, int(client_id)


class FieldBossBot(commands.Bot):
    """The main field boss timer bot class."""

    def __init__(self, application_id: int):
        intents = discord.Intents.default()
        intents.message_content = False  # We only use slash commands

        super().__init__(
            command_prefix='!',  # Unused but required
            intents=intents,
            application_id=application_id,
            description="Tracks Lord Nine field boss respawn timers"
        )

        owner_id = int(os.getenv('BOT_OWNER_ID', '0'))
        self.error_handler = ErrorHandler(self, owner_id)

    async def setup_hook(self):
        """Setup hook called before the bot connects."""
        logger.info("Setting up field boss bot...")
        self.tree.on_error = self.on_app_command_error

        try:
            await self.load_extension('fieldboss.commands')
            logger.info("Loaded boss commands")
        except Exception as e:
            logger.error(f"Failed to load boss commands: {e}")
            raise

        try:
            await self.load_extension('fieldboss.scheduler')
            logger.info("Loaded timer scheduler")
        except Exception as e:
            await self.error_handler.notify_owner("Failed to load scheduler", str(e), e)
            logger.error(f"Failed to load scheduler: {e}")
            # Commands still work without alerts and live timers

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} command(s)")
        except Exception as e:
            await self.error_handler.notify_owner("Failed to sync commands", str(e), e)
            logger.error(f"Failed to sync commands: {e}")

    async def on_ready(self):
        """Called when the bot is ready."""
        logger.info(f"Field boss bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guild(s)")

        try:
            activity = discord.Activity(type=discord.ActivityType.watching, name="Field Bosses in Lord Nine")
            await self.change_presence(activity=activity)

            await self.error_handler.send_startup_notification()
        except Exception as e:
            logger.error(f"Error in on_ready: {e}")

    async def on_app_command_error(self, interaction, error):
        """Handle application command errors."""
        await self.error_handler.handle_interaction_error(interaction, error)

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors."""
        try:
            exc_type, exc_value, exc_traceback = sys.exc_info()
            if exc_value:
                context = {"event": event, "args": str(args)[:500]}
                await self.error_handler.notify_owner(f"Bot Error in {event}", str(context), exc_value)

            logger.error(f"Bot error in event {event}", exc_info=True)
        except Exception as e:
            logger.error(f"Error in error handler: {e}")

    async def close(self):
        """Clean shutdown."""
        logger.info("Shutting down field boss bot...")
        await super().close()


async def main():
    """Main function to run the bot."""
    token, client_id = load_env()
    bot = FieldBossBot(client_id)

    try:
        await bot.start(token)
    except Exception as e:
        logger.error(f"Bot crashed: {e}", exc_info=True)
        await bot.error_handler.notify_owner("Bot Crashed", "Fatal error while running", e)
        raise
    finally:
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except MissingConfiguration as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
