"""Shared fixtures for the timer tests."""

import datetime
from zoneinfo import ZoneInfo

import pytest

from fieldboss.engine import TimerEngine
from fieldboss.errors import DestinationUnavailable
from fieldboss.storage import TimerStorage
from fieldboss.timeutils import FixedClock

MANILA = ZoneInfo("Asia/Manila")
UTC = datetime.timezone.utc


def manila(year, month, day, hour, minute=0, second=0):
    return datetime.datetime(year, month, day, hour, minute, second, tzinfo=MANILA)


class FakePresenter:
    """Records what the reconciler asks the chat platform to do."""

    def __init__(self):
        self.delivered = []
        self.messages = {}
        self.status_updates = []
        self.group_updates = []
        self.fail_delivery = False
        self.fail_update = False

    async def deliver(self, request):
        if self.fail_delivery:
            raise DestinationUnavailable("channel deleted")
        self.delivered.append(request)

    async def resolve_display(self, binding):
        return self.messages.get(binding.message_id)

    async def update_status_display(self, message, snapshot):
        if self.fail_update:
            raise DestinationUnavailable("channel deleted")
        self.status_updates.append((message, snapshot))

    async def update_group_display(self, message, snapshots):
        if self.fail_update:
            raise DestinationUnavailable("channel deleted")
        self.group_updates.append((message, snapshots))


@pytest.fixture
def clock():
    return FixedClock(manila(2026, 3, 10, 15, 0))


@pytest.fixture
async def storage(tmp_path):
    store = TimerStorage(str(tmp_path / "timers.db"))
    await store.initialize()
    return store


@pytest.fixture
def engine(storage, clock):
    return TimerEngine(storage, clock)


@pytest.fixture
def presenter():
    return FakePresenter()
