"""Background loops that keep boss alerts and live timers up to date."""

import logging

from discord.ext import commands, tasks

from .config import DISPLAY_REFRESH_SECONDS, NOTIFICATION_SWEEP_SECONDS, RETENTION_SWEEP_HOURS
from .engine import TimerEngine
from .notifications import NotificationManager
from .reconciler import Reconciler
from .storage import TimerStorage


logger = logging.getLogger(__name__)


class TimerScheduler(commands.Cog):
    """Runs the reconciliation sweeps on discord.ext.tasks loops."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.storage = TimerStorage()
        self.engine = TimerEngine(self.storage)
        self.reconciler = Reconciler(self.engine, NotificationManager(bot))

    async def cog_load(self):
        await self.storage.initialize()
        self.notification_sweep.start()
        self.display_sweep.start()
        self.retention_sweep.start()

    async def cog_unload(self):
        """Clean shutdown of the scheduler."""
        self.notification_sweep.cancel()
        self.display_sweep.cancel()
        self.retention_sweep.cancel()

    @tasks.loop(seconds=NOTIFICATION_SWEEP_SECONDS)
    async def notification_sweep(self):
        """Send warning and ready alerts."""
        try:
            await self.reconciler.run_notification_sweep()
        except Exception as e:
            logger.error(f"Error in notification sweep: {e}", exc_info=True)

    @tasks.loop(seconds=DISPLAY_REFRESH_SECONDS)
    async def display_sweep(self):
        """Refresh live timer messages."""
        try:
            await self.reconciler.run_display_sweep()
        except Exception as e:
            logger.error(f"Error in display sweep: {e}", exc_info=True)

    @tasks.loop(hours=RETENTION_SWEEP_HOURS)
    async def retention_sweep(self):
        """Delete ready timers that spawned long ago."""
        try:
            await self.reconciler.run_retention_sweep()
        except Exception as e:
            logger.error(f"Error in retention sweep: {e}", exc_info=True)

    @notification_sweep.before_loop
    @display_sweep.before_loop
    @retention_sweep.before_loop
    async def before_sweeps(self):
        """Wait for bot to be ready before sweeping."""
        await self.bot.wait_until_ready()


async def setup(bot: commands.Bot):
    """Setup function to add the scheduler to the bot."""
    await bot.add_cog(TimerScheduler(bot))
    logger.info("Timer scheduler initialized")
