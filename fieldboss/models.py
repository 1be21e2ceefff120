"""Data models for the field boss timer bot."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from .config import DEFAULT_WARNING_MINUTES

# Alert kinds
WARNING = "warning"
READY = "ready"

# Live display binding types, mirrored by the CHECK on live_displays.binding_type
STATUS_BINDING = "status"
GROUP_BINDING = "group"


@dataclass(frozen=True)
class Boss:
    """A field boss from the static catalog."""
    id: str
    name: str
    level: int
    location: str
    cycle_hours: float
    category: str  # 'short', 'long' or 'scheduled'
    scheduled_times: Tuple[str, ...] = ()  # display only


@dataclass
class BossTimer:
    """Respawn timer for one boss in one guild."""
    boss_id: str
    guild_id: str
    channel_id: str
    last_kill_time: datetime
    next_spawn_time: datetime
    is_active: bool = True
    warning_sent: bool = False
    ready_sent: bool = False


@dataclass
class GuildSettings:
    """Notification settings for a guild."""
    guild_id: str
    notification_channel: Optional[str] = None
    mention_role: Optional[str] = None
    warning_minutes: int = DEFAULT_WARNING_MINUTES


@dataclass
class LiveDisplayBinding:
    """A posted message that is refreshed with live timer data."""
    boss_id: str  # boss slug, or 'all' for group displays
    guild_id: str
    channel_id: str
    message_id: str
    binding_type: str = STATUS_BINDING


@dataclass
class TimerSnapshot:
    """Timer state at a point in time, ready for rendering."""
    boss: Boss
    timer: BossTimer
    remaining: timedelta
    is_ready: bool


@dataclass
class NotificationRequest:
    """A warning or ready alert to deliver to a guild channel."""
    kind: str  # WARNING or READY
    boss: Boss
    timer: BossTimer
    warning_minutes: int
    mention_role: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.kind == READY


@dataclass
class SetupSession:
    """In-progress selections of the setup flow."""
    channel_id: Optional[str] = None
    role_id: Optional[str] = None
    warning_minutes: Optional[int] = None


@dataclass
class ActionResult:
    """Result of a user-triggered operation."""
    success: bool
    message: str
    timer: Optional[BossTimer] = None
    boss: Optional[Boss] = None
