"""Discord slash commands for boss timers."""

import logging
from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from .bosses import BOSSES, CATEGORIES, CATEGORY_LABELS, bosses_by_category, get_boss, resolve_boss, search_bosses
from .config import AUTOCOMPLETE_LIMIT, GROUP_BINDING_ID, SETUP_SESSION_TTL_MINUTES, WARNING_MINUTE_CHOICES
from .engine import TimerEngine
from .errors import InvalidTimeFormat, UnknownBoss
from .models import GROUP_BINDING, STATUS_BINDING, GuildSettings, LiveDisplayBinding
from .sessions import SetupSessionStore
from .storage import TimerStorage
from .timeutils import parse_kill_time
from .view import CATEGORY_ICONS, TimerView, boss_image


logger = logging.getLogger(__name__)


class BossView(discord.ui.View):
    """Base view that routes callback errors to the bot's error handler."""

    def __init__(self, cog: "BossCommands", timeout: Optional[float] = 300):
        super().__init__(timeout=timeout)
        self.cog = cog

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item):
        await self.cog.bot.error_handler.handle_interaction_error(interaction, error)


class KillReportView(BossView):
    """One select menu per boss category; picking a boss records the kill."""

    def __init__(self, cog: "BossCommands", time_text: Optional[str]):
        super().__init__(cog)
        self.time_text = time_text

        for category in CATEGORIES:
            bosses = bosses_by_category(category)[:25]
            if not bosses:
                continue
            icon = CATEGORY_ICONS[category]
            select = discord.ui.Select(
                placeholder=f"{icon} {CATEGORY_LABELS[category]}",
                options=[
                    discord.SelectOption(
                        label=f"{boss.name} (Lv.{boss.level})",
                        description=(
                            f"{boss.location} - {', '.join(boss.scheduled_times)}"
                            if boss.scheduled_times else f"{boss.location} - {boss.cycle_hours}h cycle"
                        )[:100],
                        value=boss.id,
                        emoji=icon,
                    )
                    for boss in bosses
                ],
                custom_id=f"boss_killed:{category}",
            )
            select.callback = self._make_callback(select)
            self.add_item(select)

    def _make_callback(self, select: discord.ui.Select):
        async def callback(interaction: discord.Interaction):
            await self.cog.process_kill(interaction, select.values[0], self.time_text)
        return callback


class LiveTimerView(BossView):
    """Button under a kill confirmation that posts a live status message."""

    def __init__(self, cog: "BossCommands", boss_id: str):
        super().__init__(cog)
        self.boss_id = boss_id

    @discord.ui.button(label="Create Live Timer", style=discord.ButtonStyle.primary, emoji="⏱️")
    async def create_live_timer(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.cog.post_status(interaction, self.boss_id)


class QuickKillButton(discord.ui.DynamicItem[discord.ui.Button], template=r"quick_kill:(?P<boss_id>[a-z]+)"):
    """Quick kill button under a status message; reports a kill at the current time.

    The boss is encoded in the custom_id, so buttons on messages posted
    before a restart keep working.
    """

    def __init__(self, boss_id: str):
        super().__init__(
            discord.ui.Button(
                label="Boss Killed",
                style=discord.ButtonStyle.danger,
                emoji="⚔️",
                custom_id=f"quick_kill:{boss_id}",
            )
        )
        self.boss_id = boss_id

    @classmethod
    async def from_custom_id(cls, interaction: discord.Interaction, item: discord.ui.Button, match):
        return cls(match["boss_id"])

    async def callback(self, interaction: discord.Interaction):
        try:
            cog = interaction.client.get_cog("BossCommands")
            await cog.process_kill(interaction, self.boss_id, None, edit=False)
        except Exception as e:
            await interaction.client.error_handler.handle_interaction_error(interaction, e)


class QuickKillView(discord.ui.View):
    """Holds the quick kill button; later clicks go to the registered dynamic item."""

    def __init__(self, boss_id: str):
        super().__init__(timeout=300)
        self.add_item(QuickKillButton(boss_id))


class SetupView(BossView):
    """Channel, role and warning-time pickers for /boss setup."""

    def __init__(self, cog: "BossCommands", settings: GuildSettings):
        super().__init__(cog, timeout=SETUP_SESSION_TTL_MINUTES * 60)
        self.settings = settings

        self.warning_select.options = [
            discord.SelectOption(
                label=f"{minutes} minute{'s' if minutes != 1 else ''} before spawn",
                description=f"Get notified {minutes} minute{'s' if minutes != 1 else ''} early",
                value=str(minutes),
                default=minutes == settings.warning_minutes,
            )
            for minutes in WARNING_MINUTE_CHOICES
        ]

    def _session(self, interaction: discord.Interaction):
        return self.cog.sessions.get_or_create(str(interaction.guild_id), str(interaction.user.id))

    async def _refresh(self, interaction: discord.Interaction, session):
        self.finish.disabled = not session.channel_id
        embed = self.cog.view.format_setup(session.channel_id, session.role_id, session.warning_minutes)
        await interaction.response.edit_message(embed=embed, view=self)

    @discord.ui.select(
        cls=discord.ui.ChannelSelect,
        placeholder="Select alert channel...",
        channel_types=[discord.ChannelType.text, discord.ChannelType.news],
        min_values=1,
        max_values=1,
        row=0,
    )
    async def channel_select(self, interaction: discord.Interaction, select: discord.ui.ChannelSelect):
        session = self._session(interaction)
        session.channel_id = str(select.values[0].id)
        await self._refresh(interaction, session)

    @discord.ui.select(cls=discord.ui.RoleSelect, placeholder="Select role to mention...", min_values=0, max_values=1, row=1)
    async def role_select(self, interaction: discord.Interaction, select: discord.ui.RoleSelect):
        session = self._session(interaction)
        session.role_id = str(select.values[0].id) if select.values else None
        await self._refresh(interaction, session)

    @discord.ui.select(placeholder="Select warning time...", options=[discord.SelectOption(label="5", value="5")], row=2)
    async def warning_select(self, interaction: discord.Interaction, select: discord.ui.Select):
        session = self._session(interaction)
        session.warning_minutes = int(select.values[0])
        await self._refresh(interaction, session)

    @discord.ui.button(label="Complete Setup", style=discord.ButtonStyle.success, emoji="✅", disabled=True, row=3)
    async def finish(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.cog.finish_setup(interaction)


@app_commands.guild_only()
class BossCommands(commands.GroupCog, group_name="boss", group_description="Manage field boss timers"):
    """Cog containing the /boss slash commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.storage = TimerStorage()
        self.engine = TimerEngine(self.storage)
        self.sessions = SetupSessionStore()
        self.view = TimerView()
        super().__init__()

    async def cog_load(self):
        """Initialize the database and register the quick kill button."""
        await self.storage.initialize()
        self.bot.add_dynamic_items(QuickKillButton)

    async def cog_unload(self):
        self.bot.remove_dynamic_items(QuickKillButton)

    async def boss_name_autocomplete(self, interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
        """Suggest bosses by name or location."""
        bosses = search_bosses(current) if current else BOSSES
        return [
            app_commands.Choice(name=f"{boss.name} (Lv.{boss.level}) - {boss.location}", value=boss.id)
            for boss in bosses[:AUTOCOMPLETE_LIMIT]
        ]

    @app_commands.command(name="setup", description="Configure boss notification settings (Admin only)")
    async def setup(self, interaction: discord.Interaction):
        """Open the notification setup panel."""
        if not interaction.user.guild_permissions.administrator:
            await interaction.response.send_message("❌ You need **Administrator** permissions to use this command.", ephemeral=True)
            return

        settings = await self.storage.get_guild_settings(str(interaction.guild_id))
        await interaction.response.send_message(
            embed=self.view.format_setup(),
            view=SetupView(self, settings),
            ephemeral=True
        )

    async def finish_setup(self, interaction: discord.Interaction):
        """Save the selections of a setup session."""
        guild_id = str(interaction.guild_id)
        session = self.sessions.pop(guild_id, str(interaction.user.id))

        if not session or not session.channel_id:
            await interaction.response.send_message(
                "❌ Your setup session expired or no channel was selected. Run `/boss setup` again.",
                ephemeral=True
            )
            return

        current = await self.storage.get_guild_settings(guild_id)
        settings = GuildSettings(
            guild_id=guild_id,
            notification_channel=session.channel_id,
            mention_role=session.role_id,
            warning_minutes=session.warning_minutes or current.warning_minutes,
        )
        await self.storage.set_guild_settings(settings)
        logger.info(f"Saved boss settings for guild {guild_id}: channel {settings.notification_channel}, warning {settings.warning_minutes}m")

        embed = self.view.format_settings(settings, title="✅ Boss Notification Settings Saved!")
        await interaction.response.edit_message(embed=embed, view=None)

    @app_commands.command(name="killed", description="Report that a boss was killed")
    @app_commands.describe(time="Kill time in 12-hour format (e.g., 2:30 PM) or leave blank for now")
    async def killed(self, interaction: discord.Interaction, time: Optional[str] = None):
        """Show the boss picker for a kill report."""
        if time:
            try:
                parse_kill_time(time)
            except InvalidTimeFormat as e:
                await interaction.response.send_message(e.user_message, ephemeral=True)
                return

        await interaction.response.send_message(
            embed=self.view.format_kill_prompt(time),
            view=KillReportView(self, time),
            ephemeral=True
        )

    async def process_kill(self, interaction: discord.Interaction, boss_id: str, time_text: Optional[str], edit: bool = True):
        """Record a kill picked from the UI and confirm it."""
        try:
            timer = await self.engine.record_kill(
                boss_id, time_text, str(interaction.guild_id), str(interaction.channel_id)
            )
        except (InvalidTimeFormat, UnknownBoss) as e:
            await interaction.response.send_message(e.user_message, ephemeral=True)
            return

        boss = get_boss(boss_id)
        embed = self.view.format_kill(boss, timer)
        image = boss_image(boss)
        attachments = [image] if image else []

        if edit:
            await interaction.response.edit_message(
                embed=embed, attachments=attachments, view=LiveTimerView(self, boss.id)
            )
        else:
            kwargs = {"file": image} if image else {}
            await interaction.response.send_message(embed=embed, view=LiveTimerView(self, boss.id), ephemeral=True, **kwargs)

    @app_commands.command(name="status", description="Check boss timer status")
    @app_commands.describe(name="Boss name (optional, shows all if empty)")
    async def status(self, interaction: discord.Interaction, name: Optional[str] = None):
        """Show one boss timer, or every active timer in the server."""
        if name:
            await self.post_status(interaction, name)
        else:
            await self.post_group_status(interaction)

    status.autocomplete("name")(boss_name_autocomplete)

    async def post_status(self, interaction: discord.Interaction, boss_query: str):
        """Post a live status message for one boss and register it for refreshes."""
        guild_id = str(interaction.guild_id)
        try:
            boss = resolve_boss(boss_query)
        except UnknownBoss as e:
            await interaction.response.send_message(e.user_message, ephemeral=True)
            return

        timer = await self.engine.get_timer(boss.id, guild_id)
        if not timer:
            await interaction.response.send_message(
                f"❌ No timer set for **{boss.name}**. Use `/boss killed` to start tracking.", ephemeral=True
            )
            return

        snapshot = self.engine.snapshot(timer)
        embed = self.view.format_status(snapshot, live=True)
        kwargs = {}
        image = boss_image(boss)
        if image:
            kwargs["file"] = image
        if not snapshot.is_ready:
            kwargs["view"] = QuickKillView(boss.id)

        await interaction.response.send_message(embed=embed, **kwargs)
        message = await interaction.original_response()

        await self.storage.add_live_display(LiveDisplayBinding(
            boss_id=boss.id,
            guild_id=guild_id,
            channel_id=str(message.channel.id),
            message_id=str(message.id),
            binding_type=STATUS_BINDING,
        ))

    async def post_group_status(self, interaction: discord.Interaction):
        """Post the server's timer list and register it for refreshes."""
        guild_id = str(interaction.guild_id)
        timers = await self.engine.list_guild_timers(guild_id)

        if not timers:
            await interaction.response.send_message("❌ No boss timers active. Use `/boss killed` to start tracking bosses.")
            return

        snapshots = [self.engine.snapshot(timer) for timer in timers if get_boss(timer.boss_id)]
        await interaction.response.send_message(embed=self.view.format_group(snapshots))
        message = await interaction.original_response()

        await self.storage.add_live_display(LiveDisplayBinding(
            boss_id=GROUP_BINDING_ID,
            guild_id=guild_id,
            channel_id=str(message.channel.id),
            message_id=str(message.id),
            binding_type=GROUP_BINDING,
        ))

    @app_commands.command(name="list", description="List all available bosses")
    @app_commands.describe(category="Filter by category")
    @app_commands.choices(category=[
        app_commands.Choice(name=CATEGORY_LABELS[category], value=category) for category in CATEGORIES
    ])
    async def list_bosses(self, interaction: discord.Interaction, category: Optional[app_commands.Choice[str]] = None):
        """List the boss catalog."""
        embed = self.view.format_list(category.value if category else None)
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="remove", description="Remove a boss timer")
    @app_commands.describe(name="Boss name")
    async def remove(self, interaction: discord.Interaction, name: str):
        """Remove the timer for a boss."""
        result = await self.engine.remove_timer_for(name, str(interaction.guild_id))

        if result.success:
            await interaction.response.send_message(embed=self.view.format_removed(result.message))
        else:
            await interaction.response.send_message(result.message, ephemeral=True)

    remove.autocomplete("name")(boss_name_autocomplete)

    @app_commands.command(name="settings", description="View current guild settings")
    async def settings(self, interaction: discord.Interaction):
        """Show the notification settings for this server."""
        settings = await self.storage.get_guild_settings(str(interaction.guild_id))
        await interaction.response.send_message(embed=self.view.format_settings(settings))


async def setup(bot: commands.Bot):
    """Setup function to add the cog to the bot."""
    await bot.add_cog(BossCommands(bot))
