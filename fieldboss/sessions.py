"""Short-lived storage for the multi-step setup flow."""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Optional, Tuple

from .config import SETUP_SESSION_MAX_ENTRIES, SETUP_SESSION_TTL_MINUTES
from .models import SetupSession
from .timeutils import SYSTEM_CLOCK, Clock

SessionKey = Tuple[str, str]


class SetupSessionStore:
    """Setup selections keyed by (guild_id, user_id).

    Entries expire after a fixed TTL and the store never holds more than
    ``max_entries``; the least recently touched entry is evicted first.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=SETUP_SESSION_TTL_MINUTES),
                 max_entries: int = SETUP_SESSION_MAX_ENTRIES, clock: Clock = SYSTEM_CLOCK):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[SessionKey, Tuple[datetime, SetupSession]]" = OrderedDict()

    def __len__(self):
        self._purge_expired()
        return len(self._entries)

    def _purge_expired(self):
        now = self.clock.now()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def get(self, guild_id: str, user_id: str) -> Optional[SetupSession]:
        """Get a live session, or None if it never existed or has expired."""
        key = (guild_id, user_id)
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, session = entry
        if expires_at <= self.clock.now():
            del self._entries[key]
            return None
        return session

    def get_or_create(self, guild_id: str, user_id: str) -> SetupSession:
        session = self.get(guild_id, user_id)
        if session is None:
            session = SetupSession()
        self.put(guild_id, user_id, session)
        return session

    def put(self, guild_id: str, user_id: str, session: SetupSession):
        """Store a session and restart its TTL."""
        key = (guild_id, user_id)
        self._entries.pop(key, None)
        self._entries[key] = (self.clock.now() + self.ttl, session)

        self._purge_expired()
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def pop(self, guild_id: str, user_id: str) -> Optional[SetupSession]:
        """Remove and return a live session."""
        session = self.get(guild_id, user_id)
        self._entries.pop((guild_id, user_id), None)
        return session
