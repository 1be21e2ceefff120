"""Boss timer engine: the only writer of timer rows."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .bosses import require_boss, resolve_boss
from .errors import TimerNotFound, UnknownBoss
from .models import ActionResult, BossTimer, TimerSnapshot
from .storage import TimerStorage
from .timeutils import SYSTEM_CLOCK, Clock, current_kill_time, parse_kill_time


logger = logging.getLogger(__name__)


def remaining_time(timer: BossTimer, now: datetime) -> timedelta:
    """Time left until the next spawn; zero or negative means ready."""
    return timer.next_spawn_time - now


def is_ready(timer: BossTimer, now: datetime) -> bool:
    return remaining_time(timer, now) <= timedelta(0)


class TimerEngine:
    """Computes spawn times and manages timer rows."""

    def __init__(self, storage: TimerStorage, clock: Clock = SYSTEM_CLOCK):
        self.storage = storage
        self.clock = clock

    async def report_kill(self, boss_id: str, kill_time: datetime, guild_id: str, channel_id: str) -> BossTimer:
        """Start (or restart) the timer for a boss from an aware kill instant."""
        if kill_time.tzinfo is None or kill_time.utcoffset() is None:
            raise ValueError("kill_time must be timezone-aware")
        boss = require_boss(boss_id)
        kill_time = kill_time.replace(microsecond=0)

        timer = BossTimer(
            boss_id=boss.id,
            guild_id=guild_id,
            channel_id=channel_id,
            last_kill_time=kill_time,
            next_spawn_time=kill_time + timedelta(hours=boss.cycle_hours),
            is_active=True,
            warning_sent=False,
            ready_sent=False,
        )
        await self.storage.upsert_timer(timer)

        logger.info(f"Kill reported for {boss.id} in guild {guild_id}, next spawn {timer.next_spawn_time.isoformat()}")
        return timer

    async def record_kill(self, boss_id: str, time_text: Optional[str], guild_id: str, fallback_channel_id: str) -> BossTimer:
        """Report a kill from user input.

        An empty time (or "now") means the kill just happened. Notifications
        go to the guild's configured channel, or to the channel the kill was
        reported in when none is configured.
        """
        require_boss(boss_id)

        if time_text and time_text.strip().lower() != "now":
            kill_time = parse_kill_time(time_text, self.clock)
        else:
            kill_time = current_kill_time(self.clock)

        settings = await self.storage.get_guild_settings(guild_id)
        channel_id = settings.notification_channel or fallback_channel_id

        return await self.report_kill(boss_id, kill_time, guild_id, channel_id)

    async def get_timer(self, boss_id: str, guild_id: str) -> Optional[BossTimer]:
        return await self.storage.get_timer(boss_id, guild_id)

    async def list_guild_timers(self, guild_id: str) -> List[BossTimer]:
        """Active timers in a guild, soonest spawn first."""
        return await self.storage.get_guild_timers(guild_id)

    async def list_all_active_timers(self) -> List[BossTimer]:
        return await self.storage.get_active_timers()

    async def remove_timer(self, boss_id: str, guild_id: str) -> bool:
        """Delete a timer. Missing timers are a no-op and return False."""
        removed = await self.storage.delete_timer(boss_id, guild_id)
        if removed:
            logger.info(f"Removed timer for {boss_id} in guild {guild_id}")
        return removed

    async def remove_timer_for(self, boss_query: str, guild_id: str) -> ActionResult:
        """Remove a timer on behalf of a user, reporting what happened."""
        try:
            boss = resolve_boss(boss_query)
        except UnknownBoss as e:
            return ActionResult(False, e.user_message)

        existing = await self.get_timer(boss.id, guild_id)
        if not existing:
            return ActionResult(False, TimerNotFound(boss.name).user_message, boss=boss)

        await self.remove_timer(boss.id, guild_id)
        return ActionResult(True, f"Timer for **{boss.name}** has been removed.", timer=existing, boss=boss)

    def remaining_time(self, timer: BossTimer, now: Optional[datetime] = None) -> timedelta:
        return remaining_time(timer, now or self.clock.now())

    def is_ready(self, timer: BossTimer, now: Optional[datetime] = None) -> bool:
        return is_ready(timer, now or self.clock.now())

    def snapshot(self, timer: BossTimer, now: Optional[datetime] = None) -> TimerSnapshot:
        """Capture a timer with its remaining time for rendering."""
        now = now or self.clock.now()
        remaining = remaining_time(timer, now)
        return TimerSnapshot(
            boss=require_boss(timer.boss_id),
            timer=timer,
            remaining=remaining,
            is_ready=remaining <= timedelta(0),
        )
