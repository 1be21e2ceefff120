"""Clock and kill-time parsing in the operational timezone.

Players report kill times as bare clock times ("2:30 PM", "10:15", "9").
They are read in the operational timezone (GMT+8) and stored as UTC.

When the AM/PM marker is omitted it is guessed from the current time. The
guess is a best-effort approximation that works for recent kills; times far
from now can land on the wrong half of the day.
"""

import datetime
import re
from typing import Optional
from zoneinfo import ZoneInfo

from .config import FUTURE_TOLERANCE_HOURS, TIMEZONE
from .errors import InvalidTimeFormat

_TIME_PATTERN = re.compile(r"^(\d{1,2}):?(\d{0,2})\s*(AM|PM)?$")


def get_timezone():
    """Get the operational timezone object."""
    return ZoneInfo(TIMEZONE)


class Clock:
    """Source of the current time. Tests swap in a fixed clock."""

    def now(self) -> datetime.datetime:
        """Current UTC time."""
        return datetime.datetime.now(datetime.timezone.utc)

    def local_now(self) -> datetime.datetime:
        """Current time in the operational timezone."""
        return self.now().astimezone(get_timezone())


class FixedClock(Clock):
    """Clock frozen at a given instant, moved explicitly."""

    def __init__(self, instant: datetime.datetime):
        self.instant = instant

    def now(self) -> datetime.datetime:
        return self.instant.astimezone(datetime.timezone.utc)

    def advance(self, **kwargs):
        self.instant = self.instant + datetime.timedelta(**kwargs)


SYSTEM_CLOCK = Clock()


def to_24_hour(hour: int, marker: str) -> int:
    """Convert a 12-hour clock hour to 24-hour form."""
    if marker == "AM":
        return 0 if hour == 12 else hour
    return 12 if hour == 12 else hour + 12


def infer_meridiem(hour: int, current_hour: int) -> str:
    """Guess AM/PM for a bare hour given the current 24-hour hour."""
    current_is_pm = current_hour >= 12
    current_hour12 = current_hour % 12 or 12

    # Close to now: same half of the day
    if abs(hour - current_hour12) <= 2:
        return "PM" if current_is_pm else "AM"

    if current_is_pm:
        return "PM" if hour >= 6 else "AM"

    # Morning: later hours mean last evening, the day rollback handles the date
    return "AM" if hour <= current_hour12 + 2 else "PM"


def parse_kill_time(text: str, clock: Optional[Clock] = None) -> datetime.datetime:
    """Parse a 12-hour clock time into a UTC instant.

    Raises InvalidTimeFormat for anything that is not an hour in 1-12 with
    an optional minute in 0-59 and an optional AM/PM marker.
    """
    clock = clock or SYSTEM_CLOCK

    match = _TIME_PATTERN.match(text.strip().upper())
    if not match:
        raise InvalidTimeFormat(f"Invalid time format: {text!r}")

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise InvalidTimeFormat(f"Invalid time values: {text!r}")

    local_now = clock.local_now()
    marker = match.group(3) or infer_meridiem(hour, local_now.hour)

    candidate = local_now.replace(
        hour=to_24_hour(hour, marker), minute=minute, second=0, microsecond=0
    )

    # A kill is never reported well ahead of time, so it happened yesterday
    if candidate - local_now > datetime.timedelta(hours=FUTURE_TOLERANCE_HOURS):
        candidate -= datetime.timedelta(days=1)

    return candidate.astimezone(datetime.timezone.utc)


def current_kill_time(clock: Optional[Clock] = None) -> datetime.datetime:
    """Current instant as a UTC kill time, truncated to whole seconds."""
    clock = clock or SYSTEM_CLOCK
    local_now = clock.local_now().replace(microsecond=0)
    return local_now.astimezone(datetime.timezone.utc)


def to_epoch(instant: datetime.datetime) -> int:
    """Convert an aware datetime to epoch seconds."""
    return int(instant.timestamp())


def from_epoch(seconds: int) -> datetime.datetime:
    """Convert epoch seconds to an aware UTC datetime."""
    return datetime.datetime.fromtimestamp(seconds, datetime.timezone.utc)


def discord_timestamp(instant: datetime.datetime, style: str = "F") -> str:
    """Render a Discord timestamp tag (<t:...:F>, <t:...:R>)."""
    return f"<t:{to_epoch(instant)}:{style}>"
