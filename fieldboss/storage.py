"""Database storage layer for boss timers."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import aiosqlite

from .config import DATABASE_PATH, DEFAULT_WARNING_MINUTES
from .errors import PersistenceFailure
from .models import BossTimer, GuildSettings, LiveDisplayBinding
from .timeutils import from_epoch, to_epoch


logger = logging.getLogger(__name__)

NOTIFICATION_FLAGS = ("warning_sent", "ready_sent")


class TimerStorage:
    """Handles all database operations for timers, settings and live displays."""

    def __init__(self, db_path: str = DATABASE_PATH):
        self.db_path = db_path

    @asynccontextmanager
    async def _connect(self):
        """Open a connection, reporting SQLite errors as PersistenceFailure."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            logger.error(f"Database error on {self.db_path}: {e}")
            raise PersistenceFailure(str(e)) from e

    async def initialize(self):
        """Initialize the database with required tables."""
        async with self._connect() as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS boss_timers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    boss_id TEXT NOT NULL,
                    guild_id TEXT NOT NULL,
                    channel_id TEXT NOT NULL,
                    last_kill_time INTEGER NOT NULL,
                    next_spawn_time INTEGER NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    warning_sent INTEGER NOT NULL DEFAULT 0,
                    ready_sent INTEGER NOT NULL DEFAULT 0,
                    updated_at INTEGER DEFAULT (strftime('%s', 'now')),
                    UNIQUE(boss_id, guild_id)
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS guild_settings (
                    guild_id TEXT PRIMARY KEY,
                    notification_channel TEXT,
                    mention_role TEXT,
                    warning_minutes INTEGER NOT NULL DEFAULT 5,
                    updated_at INTEGER DEFAULT (strftime('%s', 'now'))
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS live_displays (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    boss_id TEXT NOT NULL,
                    guild_id TEXT NOT NULL,
                    channel_id TEXT NOT NULL,
                    message_id TEXT NOT NULL,
                    binding_type TEXT NOT NULL DEFAULT 'status' CHECK(binding_type IN ('status','group')),
                    UNIQUE(boss_id, guild_id, message_id)
                )
            """)

            await self._migrate_notification_flags(db)
            await db.commit()

    async def _migrate_notification_flags(self, db):
        """Add the notification flag columns to timer tables created before they existed."""
        cursor = await db.execute("PRAGMA table_info(boss_timers)")
        columns = {col[1] for col in await cursor.fetchall()}

        for flag in NOTIFICATION_FLAGS:
            if flag not in columns:
                await db.execute(f"ALTER TABLE boss_timers ADD COLUMN {flag} INTEGER NOT NULL DEFAULT 0")
                logger.info(f"Added {flag} column to boss_timers")

    @staticmethod
    def _row_to_timer(row) -> BossTimer:
        return BossTimer(
            boss_id=row["boss_id"],
            guild_id=row["guild_id"],
            channel_id=row["channel_id"],
            last_kill_time=from_epoch(row["last_kill_time"]),
            next_spawn_time=from_epoch(row["next_spawn_time"]),
            is_active=bool(row["is_active"]),
            warning_sent=bool(row["warning_sent"]),
            ready_sent=bool(row["ready_sent"]),
        )

    async def upsert_timer(self, timer: BossTimer):
        """Insert or fully replace the timer for a boss in a guild."""
        async with self._connect() as db:
            await db.execute("""
                INSERT OR REPLACE INTO boss_timers
                (boss_id, guild_id, channel_id, last_kill_time, next_spawn_time, is_active, warning_sent, ready_sent, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, strftime('%s', 'now'))
            """, (
                timer.boss_id, timer.guild_id, timer.channel_id,
                to_epoch(timer.last_kill_time), to_epoch(timer.next_spawn_time),
                int(timer.is_active), int(timer.warning_sent), int(timer.ready_sent),
            ))
            await db.commit()

    async def get_timer(self, boss_id: str, guild_id: str) -> Optional[BossTimer]:
        """Get the timer for a boss in a guild."""
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM boss_timers WHERE boss_id = ? AND guild_id = ?", (boss_id, guild_id)
            ) as cursor:
                row = await cursor.fetchone()
                return self._row_to_timer(row) if row else None

    async def get_guild_timers(self, guild_id: str) -> List[BossTimer]:
        """Get active timers in a guild, soonest spawn first."""
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM boss_timers WHERE guild_id = ? AND is_active = 1 ORDER BY next_spawn_time ASC",
                (guild_id,)
            ) as cursor:
                return [self._row_to_timer(row) for row in await cursor.fetchall()]

    async def get_active_timers(self) -> List[BossTimer]:
        """Get active timers across all guilds."""
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM boss_timers WHERE is_active = 1 ORDER BY next_spawn_time ASC"
            ) as cursor:
                return [self._row_to_timer(row) for row in await cursor.fetchall()]

    async def delete_timer(self, boss_id: str, guild_id: str) -> bool:
        """Delete a timer. Returns False when there was nothing to delete."""
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM boss_timers WHERE boss_id = ? AND guild_id = ?", (boss_id, guild_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def claim_notification(self, timer: BossTimer, flag: str) -> bool:
        """Atomically set a notification flag if it is still unset.

        The spawn time is part of the match, so a timer replaced by a newer
        kill report is never claimed on behalf of the old one.
        """
        if flag not in NOTIFICATION_FLAGS:
            raise ValueError(f"Unknown notification flag: {flag}")

        async with self._connect() as db:
            cursor = await db.execute(f"""
                UPDATE boss_timers
                SET {flag} = 1, updated_at = strftime('%s', 'now')
                WHERE boss_id = ? AND guild_id = ? AND next_spawn_time = ? AND {flag} = 0
            """, (timer.boss_id, timer.guild_id, to_epoch(timer.next_spawn_time)))
            await db.commit()
            return cursor.rowcount == 1

    async def release_notification(self, timer: BossTimer, flag: str):
        """Undo a claim after a failed delivery so the next sweep can retry."""
        if flag not in NOTIFICATION_FLAGS:
            raise ValueError(f"Unknown notification flag: {flag}")

        async with self._connect() as db:
            await db.execute(f"""
                UPDATE boss_timers
                SET {flag} = 0, updated_at = strftime('%s', 'now')
                WHERE boss_id = ? AND guild_id = ? AND next_spawn_time = ?
            """, (timer.boss_id, timer.guild_id, to_epoch(timer.next_spawn_time)))
            await db.commit()

    async def delete_retired_timers(self, spawned_before: datetime) -> int:
        """Delete notified ready timers that spawned before the cutoff."""
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM boss_timers WHERE ready_sent = 1 AND next_spawn_time < ?",
                (to_epoch(spawned_before),)
            )
            await db.commit()
            return cursor.rowcount

    async def get_guild_settings(self, guild_id: str) -> GuildSettings:
        """Get settings for a guild, falling back to defaults."""
        async with self._connect() as db:
            async with db.execute("SELECT * FROM guild_settings WHERE guild_id = ?", (guild_id,)) as cursor:
                row = await cursor.fetchone()

        if not row:
            return GuildSettings(guild_id=guild_id)

        return GuildSettings(
            guild_id=guild_id,
            notification_channel=row["notification_channel"],
            mention_role=row["mention_role"],
            warning_minutes=row["warning_minutes"] or DEFAULT_WARNING_MINUTES,
        )

    async def set_guild_settings(self, settings: GuildSettings):
        """Create or replace the settings for a guild."""
        async with self._connect() as db:
            await db.execute("""
                INSERT OR REPLACE INTO guild_settings
                (guild_id, notification_channel, mention_role, warning_minutes, updated_at)
                VALUES (?, ?, ?, ?, strftime('%s', 'now'))
            """, (
                settings.guild_id, settings.notification_channel,
                settings.mention_role, settings.warning_minutes,
            ))
            await db.commit()

    async def add_live_display(self, binding: LiveDisplayBinding):
        """Register a posted message for live refreshes."""
        async with self._connect() as db:
            await db.execute("""
                INSERT OR REPLACE INTO live_displays (boss_id, guild_id, channel_id, message_id, binding_type)
                VALUES (?, ?, ?, ?, ?)
            """, (binding.boss_id, binding.guild_id, binding.channel_id, binding.message_id, binding.binding_type))
            await db.commit()

    async def get_live_displays(self, boss_id: Optional[str] = None, guild_id: Optional[str] = None) -> List[LiveDisplayBinding]:
        """Get live display bindings, optionally filtered by boss and/or guild."""
        query = "SELECT boss_id, guild_id, channel_id, message_id, binding_type FROM live_displays"
        clauses, params = [], []
        if boss_id is not None:
            clauses.append("boss_id = ?")
            params.append(boss_id)
        if guild_id is not None:
            clauses.append("guild_id = ?")
            params.append(guild_id)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id ASC"

        async with self._connect() as db:
            async with db.execute(query, params) as cursor:
                return [LiveDisplayBinding(**dict(row)) for row in await cursor.fetchall()]

    async def remove_live_display(self, message_id: str):
        """Remove every binding for a message."""
        async with self._connect() as db:
            await db.execute("DELETE FROM live_displays WHERE message_id = ?", (message_id,))
            await db.commit()
