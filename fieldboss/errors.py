"""Error kinds raised by the timer core."""


class FieldBossError(Exception):
    """Base class for all bot errors."""

    user_message = "Something went wrong while processing your request."


class InvalidTimeFormat(FieldBossError):
    """The kill time could not be understood."""

    user_message = (
        "❌ Invalid time format. Please use 12-hour format like:\n"
        "• `2:30 PM`\n• `10:15 AM`\n• `6:00 PM`\n\n"
        "Or leave blank to use the current time (GMT+8 Philippines timezone)."
    )


class UnknownBoss(FieldBossError):
    """No boss in the catalog matches the given id or name."""

    def __init__(self, query: str):
        super().__init__(f"Unknown boss: {query}")
        self.query = query
        self.user_message = f"❌ Boss \"{query}\" not found."


class TimerNotFound(FieldBossError):
    """No timer exists for the boss in this guild."""

    def __init__(self, boss_name: str):
        super().__init__(f"No timer for {boss_name}")
        self.boss_name = boss_name
        self.user_message = f"❌ No timer found for **{boss_name}**."


class DestinationUnavailable(FieldBossError):
    """A guild, channel or message needed for delivery is gone."""


class PersistenceFailure(FieldBossError):
    """The timer database could not be read or written."""

    user_message = "⚠️ The timer database is temporarily unavailable. Please try again in a moment."
