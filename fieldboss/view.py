"""View formatting for boss timer displays."""

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import discord

from .bosses import BOSSES, CATEGORY_LABELS, bosses_by_category
from .config import DISPLAY_REFRESH_SECONDS, GROUP_DISPLAY_LIMIT, IMAGES_DIR
from .models import Boss, BossTimer, GuildSettings, NotificationRequest, TimerSnapshot
from .timeutils import discord_timestamp

COLOR_READY = 0x27ae60
COLOR_PENDING = 0x3498db
COLOR_KILL = 0xe74c3c
COLOR_WARNING = 0xf39c12
COLOR_LIST = 0x9b59b6
COLOR_REMOVED = 0xe67e22
COLOR_ERROR = 0xff0000

CATEGORY_ICONS = {"short": "🔵", "long": "🟣", "scheduled": "🟡"}

READY_TEXT = "**✅ READY TO SPAWN!**"


def format_remaining(remaining: timedelta, with_seconds: bool = True) -> str:
    """Format time until spawn as '2h 5m 9s', '5m 9s' or '9s'."""
    if remaining <= timedelta(0):
        return READY_TEXT

    total = int(remaining.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours > 0:
        text = f"{hours}h {minutes}m {seconds}s" if with_seconds else f"{hours}h {minutes}m"
    elif minutes > 0:
        text = f"{minutes}m {seconds}s" if with_seconds else f"{minutes}m"
    else:
        text = f"{seconds}s"
    return f"**{text}**"


def format_cycle(boss: Boss) -> str:
    hours = boss.cycle_hours
    return f"{int(hours)}h" if float(hours).is_integer() else f"{hours}h"


def boss_image(boss: Boss) -> Optional[discord.File]:
    """Attachment for the boss portrait, if one is shipped in images/."""
    path = Path(IMAGES_DIR) / f"{boss.id}.png"
    if path.exists():
        return discord.File(path, filename=f"{boss.id}.png")
    return None


class TimerView:
    """Handles formatting of timer displays."""

    def format_status(self, snapshot: TimerSnapshot, live: bool = False) -> discord.Embed:
        """Single boss status, used for /boss status and live timers."""
        boss, timer = snapshot.boss, snapshot.timer

        if snapshot.is_ready:
            status_name, status_value = "✅ Status", READY_TEXT
        elif live:
            status_name, status_value = "⏰ Time Remaining", format_remaining(snapshot.remaining)
        else:
            status_name, status_value = "⏰ Spawns", discord_timestamp(timer.next_spawn_time, "R")

        embed = discord.Embed(
            title=f"{'✅' if snapshot.is_ready else '⏳'} {boss.name} Timer",
            description=f"**{boss.name}** (Lv.{boss.level}) at **{boss.location}**",
            color=COLOR_READY if snapshot.is_ready else COLOR_PENDING,
            timestamp=discord.utils.utcnow()
        )
        embed.add_field(name="⚔️ Last Kill", value=discord_timestamp(timer.last_kill_time, "R"), inline=True)
        embed.add_field(name=status_name, value=status_value, inline=True)
        embed.add_field(name="🔄 Cycle", value=format_cycle(boss), inline=True)
        embed.set_thumbnail(url=f"attachment://{boss.id}.png")
        embed.set_footer(text=f"🔄 Updates every {DISPLAY_REFRESH_SECONDS} seconds")
        return embed

    def format_group(self, snapshots: List[TimerSnapshot]) -> discord.Embed:
        """All active timers of a guild, soonest first."""
        embed = discord.Embed(
            title="🏹 Active Boss Timers",
            color=COLOR_PENDING,
            timestamp=discord.utils.utcnow()
        )

        if not snapshots:
            embed.description = "❌ No boss timers active. Use `/boss killed` to start tracking bosses."
            return embed

        embed.description = "Here are all active boss timers for this server:"
        for snapshot in snapshots[:GROUP_DISPLAY_LIMIT]:
            boss = snapshot.boss
            embed.add_field(
                name=f"{'✅' if snapshot.is_ready else '⏳'} {boss.name} (Lv.{boss.level})",
                value=format_remaining(snapshot.remaining),
                inline=True
            )

        if len(snapshots) > GROUP_DISPLAY_LIMIT:
            embed.set_footer(text=f"Showing {GROUP_DISPLAY_LIMIT} of {len(snapshots)} timers • 🔄 Updates every {DISPLAY_REFRESH_SECONDS} seconds")
        else:
            embed.set_footer(text=f"🔄 Updates every {DISPLAY_REFRESH_SECONDS} seconds")
        return embed

    def format_kill_prompt(self, time_text: Optional[str]) -> discord.Embed:
        """Prompt shown by /boss killed before a boss is picked."""
        embed = discord.Embed(
            title="🗡️ Report Boss Kill",
            description="Select the boss that was killed:",
            color=COLOR_KILL
        )

        if time_text:
            embed.add_field(
                name="⏰ Kill Time",
                value=f"**{time_text}** (GMT+8)\n*Time has been set - now select the boss below*",
                inline=False
            )
        else:
            embed.add_field(
                name="⏰ Kill Time",
                value="**Current time** (GMT+8)\n*Using current time - select the boss below*",
                inline=False
            )
            embed.add_field(
                name="📝 Tip",
                value="Use `/boss killed time:2:30 PM` to set a specific kill time",
                inline=False
            )
        return embed

    def format_kill(self, boss: Boss, timer: BossTimer) -> discord.Embed:
        """Confirmation after a kill has been recorded."""
        embed = discord.Embed(
            title=f"🗡️ {boss.name} Killed!",
            description=f"**{boss.name}** (Lv.{boss.level}) was killed at **{boss.location}**\n*🌏 Times shown in Philippines GMT+8 timezone*",
            color=COLOR_KILL,
            timestamp=discord.utils.utcnow()
        )
        embed.add_field(name="⚔️ Kill Time", value=discord_timestamp(timer.last_kill_time, "F"), inline=True)
        embed.add_field(name="⏰ Next Spawn", value=discord_timestamp(timer.next_spawn_time, "R"), inline=True)
        embed.add_field(name="🔄 Cycle", value=format_cycle(boss), inline=True)
        embed.set_thumbnail(url=f"attachment://{boss.id}.png")
        return embed

    def format_list(self, category: Optional[str] = None) -> discord.Embed:
        """Boss catalog, optionally limited to one category."""
        embed = discord.Embed(
            title="📋 Lord Nine Field Bosses",
            description=f"**{CATEGORY_LABELS[category]}**" if category else "All available field bosses in Lord Nine",
            color=COLOR_LIST,
            timestamp=discord.utils.utcnow()
        )

        categories = [category] if category else list(CATEGORY_LABELS)
        for cat in categories:
            bosses = bosses_by_category(cat)
            if not bosses:
                continue
            if cat == "scheduled":
                lines = [f"• **{b.name}** (Lv.{b.level}) - {', '.join(b.scheduled_times) or 'Check schedule'}" for b in bosses]
            else:
                lines = [f"• **{b.name}** (Lv.{b.level}) - {format_cycle(b)}" for b in bosses]
            embed.add_field(name=f"{CATEGORY_ICONS[cat]} {CATEGORY_LABELS[cat]}", value="\n".join(lines), inline=False)

        embed.add_field(
            name="ℹ️ How to Use",
            value=(
                "• `/boss setup` - Configure notifications (Admin)\n"
                "• `/boss killed` - Report boss kill (select from UI)\n"
                "• `/boss killed time:2:30 PM` - Report with specific time\n"
                "• `/boss status <name>` - Check timer\n"
                "• `/boss status` - View all timers\n\n"
                "🌏 **All times use Philippines GMT+8 timezone**"
            ),
            inline=False
        )
        embed.set_footer(text=f"{len(BOSSES)} bosses tracked")
        return embed

    def format_settings(self, settings: GuildSettings, title: str = "⚙️ Guild Boss Settings") -> discord.Embed:
        """Current guild notification settings."""
        embed = discord.Embed(
            title=title,
            description="Current configuration for this server:",
            color=COLOR_PENDING,
            timestamp=discord.utils.utcnow()
        )
        embed.add_field(
            name="📢 Notification Channel",
            value=f"<#{settings.notification_channel}>" if settings.notification_channel else "Not set",
            inline=True
        )
        embed.add_field(
            name="👥 Mention Role",
            value=f"<@&{settings.mention_role}>" if settings.mention_role else "None",
            inline=True
        )
        embed.add_field(name="⏰ Warning Time", value=f"{settings.warning_minutes} minutes", inline=True)

        if not settings.notification_channel:
            embed.add_field(
                name="💡 Setup Required",
                value="Use `/boss setup` to configure notification settings (Admin only)",
                inline=False
            )
        return embed

    def format_setup(self, channel_id: Optional[str] = None, role_id: Optional[str] = None,
                     warning_minutes: Optional[int] = None) -> discord.Embed:
        """Setup panel reflecting the selections made so far."""
        embed = discord.Embed(
            title="⚙️ Boss Notification Setup",
            description="Configure your server's boss alert settings:",
            color=COLOR_PENDING
        )
        if channel_id:
            embed.add_field(name="📢 Selected Channel", value=f"<#{channel_id}>", inline=True)
        if role_id:
            embed.add_field(name="👥 Selected Role", value=f"<@&{role_id}>", inline=True)
        if warning_minutes:
            embed.add_field(name="⏰ Warning Time", value=f"{warning_minutes} minutes", inline=True)
        embed.set_footer(text="Ready to complete setup!" if channel_id else "Select the alert channel and role to mention below")
        return embed

    def format_notification(self, request: NotificationRequest) -> discord.Embed:
        """Warning or ready alert."""
        boss = request.boss
        if request.is_ready:
            title = "🚨 Boss Ready!"
            description = f"**{boss.name}** (Lv.{boss.level}) is ready to spawn at **{boss.location}**!"
        else:
            title = "⚠️ Boss Warning!"
            description = f"**{boss.name}** (Lv.{boss.level}) will spawn in **{request.warning_minutes} minutes** at **{boss.location}**!"

        embed = discord.Embed(
            title=title,
            description=description,
            color=COLOR_READY if request.is_ready else COLOR_WARNING,
            timestamp=discord.utils.utcnow()
        )
        embed.add_field(name="📍 Location", value=boss.location, inline=True)
        embed.add_field(name="🔄 Cycle", value=format_cycle(boss), inline=True)
        embed.add_field(name="⏰ Spawn Time", value=discord_timestamp(request.timer.next_spawn_time, "F"), inline=True)
        return embed

    def format_removed(self, message: str) -> discord.Embed:
        return discord.Embed(
            title="🗑️ Timer Removed",
            description=message,
            color=COLOR_REMOVED,
            timestamp=discord.utils.utcnow()
        )

    def format_error(self, message: str, title: str = "❌ Error") -> discord.Embed:
        """Error reply sent by the interaction error handler."""
        return discord.Embed(title=title, description=message, color=COLOR_ERROR)
