"""Periodic reconciliation of timers against the clock.

Three sweeps run on their own cadence:

* notification sweep: sends the warning and ready alerts, once each per timer
* display sweep: refreshes every live status message, pruning dead ones
* retention sweep: deletes ready timers that spawned long ago

Delivery is gated by the ``warning_sent``/``ready_sent`` flags. A flag is
claimed with a single compare-and-set before delivery and released again if
delivery fails, so an alert is never sent twice and a failed alert is
retried by a later sweep while its condition still holds.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, List, Optional, Protocol

from .bosses import get_boss
from .config import DELIVERY_TIMEOUT_SECONDS, GROUP_BINDING_ID, RETENTION_WINDOW_HOURS
from .engine import TimerEngine
from .errors import DestinationUnavailable, FieldBossError, PersistenceFailure
from .models import (
    GROUP_BINDING, READY, WARNING, BossTimer, GuildSettings, LiveDisplayBinding, NotificationRequest, TimerSnapshot,
)


logger = logging.getLogger(__name__)

_FLAG_FOR_KIND = {WARNING: "warning_sent", READY: "ready_sent"}


class Presenter(Protocol):
    """Renders alerts and live displays on the chat platform."""

    async def deliver(self, request: NotificationRequest) -> None:
        """Send an alert; raise DestinationUnavailable if the channel is gone."""

    async def resolve_display(self, binding: LiveDisplayBinding) -> Optional[Any]:
        """Fetch the message behind a binding, or None if it no longer exists."""

    async def update_status_display(self, message: Any, snapshot: TimerSnapshot) -> None:
        """Re-render a single boss status message."""

    async def update_group_display(self, message: Any, snapshots: List[TimerSnapshot]) -> None:
        """Re-render a guild-wide timer list message."""


def due_notification(timer: BossTimer, settings: GuildSettings, remaining: timedelta) -> Optional[str]:
    """Decide which alert, if any, a timer is due for right now.

    Ready fires once the spawn time is reached. Warning fires only on the
    whole minute equal to the guild's lead time.
    """
    if remaining <= timedelta(0):
        return None if timer.ready_sent else READY

    minutes_until_spawn = remaining // timedelta(minutes=1)
    if minutes_until_spawn == settings.warning_minutes and not timer.warning_sent:
        return WARNING
    return None


class Reconciler:
    """Runs the notification, display and retention sweeps."""

    def __init__(self, engine: TimerEngine, presenter: Presenter,
                 timeout: float = DELIVERY_TIMEOUT_SECONDS,
                 retention: timedelta = timedelta(hours=RETENTION_WINDOW_HOURS)):
        self.engine = engine
        self.storage = engine.storage
        self.clock = engine.clock
        self.presenter = presenter
        self.timeout = timeout
        self.retention = retention

        self._notification_lock = asyncio.Lock()
        self._display_lock = asyncio.Lock()
        self._retention_lock = asyncio.Lock()

        # Claims whose release failed; retried before the next notification sweep
        self._pending_releases = []

    async def _call(self, coro):
        """Await a presenter call, treating a timeout as an unreachable destination."""
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise DestinationUnavailable(f"timed out after {self.timeout}s") from e

    async def run_notification_sweep(self) -> int:
        """Send due alerts. Returns the number delivered."""
        if self._notification_lock.locked():
            logger.warning("Notification sweep still running, skipping this tick")
            return 0

        async with self._notification_lock:
            await self._retry_releases()
            timers = await self.engine.list_all_active_timers()
            now = self.clock.now()
            settings_cache = {}
            delivered = 0

            for timer in timers:
                try:
                    settings = settings_cache.get(timer.guild_id)
                    if settings is None:
                        settings = await self.storage.get_guild_settings(timer.guild_id)
                        settings_cache[timer.guild_id] = settings

                    kind = due_notification(timer, settings, self.engine.remaining_time(timer, now))
                    if kind and await self._notify(timer, settings, kind):
                        delivered += 1
                except FieldBossError as e:
                    logger.error(f"Skipping timer {timer.boss_id} in guild {timer.guild_id}: {e}")

            if delivered:
                logger.info(f"Notification sweep delivered {delivered} alert(s) for {len(timers)} timer(s)")
            return delivered

    async def _notify(self, timer: BossTimer, settings: GuildSettings, kind: str) -> bool:
        boss = get_boss(timer.boss_id)
        if boss is None:
            logger.warning(f"Timer references unknown boss {timer.boss_id}, skipping")
            return False

        flag = _FLAG_FOR_KIND[kind]
        if not await self.storage.claim_notification(timer, flag):
            # Already sent, or the timer was replaced by a newer kill report
            return False

        request = NotificationRequest(
            kind=kind,
            boss=boss,
            timer=timer,
            warning_minutes=settings.warning_minutes,
            mention_role=settings.mention_role,
        )

        try:
            await self._call(self.presenter.deliver(request))
        except Exception as e:
            logger.error(f"Failed to deliver {kind} alert for {boss.id} in guild {timer.guild_id}: {e}")
            await self._release(timer, flag)
            return False

        logger.info(f"Sent {kind} alert for {boss.id} in guild {timer.guild_id}")
        return True

    async def _release(self, timer: BossTimer, flag: str):
        try:
            await self.storage.release_notification(timer, flag)
        except PersistenceFailure as e:
            logger.critical(f"Could not release {flag} for {timer.boss_id} in guild {timer.guild_id}, will retry: {e}")
            self._pending_releases.append((timer, flag))

    async def _retry_releases(self):
        pending, self._pending_releases = self._pending_releases, []
        for timer, flag in pending:
            await self._release(timer, flag)

    async def run_display_sweep(self) -> int:
        """Refresh every live display. Returns the number updated."""
        if self._display_lock.locked():
            logger.warning("Display sweep still running, skipping this tick")
            return 0

        async with self._display_lock:
            bindings = await self.storage.get_live_displays()
            updated = 0

            for binding in bindings:
                try:
                    if await self._refresh(binding):
                        updated += 1
                except FieldBossError as e:
                    logger.error(f"Skipping live display {binding.message_id}: {e}")

            return updated

    async def _refresh(self, binding: LiveDisplayBinding) -> bool:
        try:
            message = await self._call(self.presenter.resolve_display(binding))
        except Exception as e:
            logger.info(f"Live display {binding.message_id} unreachable ({e}), removing")
            await self.storage.remove_live_display(binding.message_id)
            return False

        if message is None:
            logger.info(f"Live display {binding.message_id} was deleted, removing")
            await self.storage.remove_live_display(binding.message_id)
            return False

        now = self.clock.now()

        if binding.binding_type == GROUP_BINDING or binding.boss_id == GROUP_BINDING_ID:
            timers = await self.engine.list_guild_timers(binding.guild_id)
            snapshots = [self.engine.snapshot(t, now) for t in timers if get_boss(t.boss_id)]
            update = self.presenter.update_group_display(message, snapshots)
        else:
            timer = await self.engine.get_timer(binding.boss_id, binding.guild_id)
            if timer is None or get_boss(binding.boss_id) is None:
                logger.info(f"Timer for live display {binding.message_id} is gone, removing")
                await self.storage.remove_live_display(binding.message_id)
                return False
            update = self.presenter.update_status_display(message, self.engine.snapshot(timer, now))

        try:
            await self._call(update)
        except Exception as e:
            logger.warning(f"Failed to update live display {binding.message_id} ({e}), removing")
            await self.storage.remove_live_display(binding.message_id)
            return False
        return True

    async def run_retention_sweep(self) -> int:
        """Delete ready timers past the retention window. Returns the number deleted."""
        if self._retention_lock.locked():
            logger.warning("Retention sweep still running, skipping this tick")
            return 0

        async with self._retention_lock:
            cutoff = self.clock.now() - self.retention
            deleted = await self.storage.delete_retired_timers(cutoff)
            if deleted:
                logger.info(f"Retired {deleted} stale ready timer(s)")
            return deleted
