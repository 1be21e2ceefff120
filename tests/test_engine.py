"""Tests for spawn computation and timer management."""

import datetime

import pytest

from fieldboss.bosses import BOSSES
from fieldboss.engine import TimerEngine, is_ready, remaining_time
from fieldboss.errors import InvalidTimeFormat, UnknownBoss
from fieldboss.models import GuildSettings

from conftest import UTC

KILL = datetime.datetime(2026, 3, 10, 7, 0, tzinfo=UTC)


async def test_report_kill_sets_next_spawn_from_cycle(engine):
    timer = await engine.report_kill("venatus", KILL, "g1", "c1")

    assert timer.last_kill_time == KILL
    assert timer.next_spawn_time == KILL + datetime.timedelta(hours=10)
    assert not timer.warning_sent and not timer.ready_sent
    assert await engine.get_timer("venatus", "g1") == timer

    assert not is_ready(timer, KILL + datetime.timedelta(hours=10, seconds=-1))
    assert is_ready(timer, KILL + datetime.timedelta(hours=10))
    assert remaining_time(timer, KILL + datetime.timedelta(hours=11)) == datetime.timedelta(hours=-1)


async def test_report_kill_drops_microseconds(engine):
    timer = await engine.report_kill("venatus", KILL.replace(microsecond=250000), "g1", "c1")
    assert timer.last_kill_time == KILL


async def test_every_boss_spawns_one_cycle_after_kill(engine):
    for boss in BOSSES:
        timer = await engine.report_kill(boss.id, KILL, "g1", "c1")
        assert timer.next_spawn_time - timer.last_kill_time == datetime.timedelta(hours=boss.cycle_hours)


async def test_report_kill_replaces_existing_timer(engine, storage):
    first = await engine.report_kill("venatus", KILL, "g1", "c1")
    assert await storage.claim_notification(first, "warning_sent")
    assert await storage.claim_notification(first, "ready_sent")

    later = KILL + datetime.timedelta(hours=12)
    await engine.report_kill("venatus", later, "g1", "c2")

    timers = await engine.list_guild_timers("g1")
    assert len(timers) == 1
    timer = timers[0]
    assert timer.last_kill_time == later
    assert timer.channel_id == "c2"
    assert not timer.warning_sent and not timer.ready_sent


async def test_report_kill_unknown_boss_stores_nothing(engine):
    with pytest.raises(UnknownBoss):
        await engine.report_kill("nope", KILL, "g1", "c1")
    assert await engine.list_guild_timers("g1") == []


async def test_list_guild_timers_soonest_first_and_scoped(engine):
    await engine.report_kill("ordo", KILL, "g1", "c1")      # 48h
    await engine.report_kill("venatus", KILL, "g1", "c1")   # 10h
    await engine.report_kill("ego", KILL, "g1", "c1")       # 21h
    await engine.report_kill("venatus", KILL, "g2", "c9")

    timers = await engine.list_guild_timers("g1")
    assert [t.boss_id for t in timers] == ["venatus", "ego", "ordo"]
    assert len(await engine.list_all_active_timers()) == 4


async def test_remove_missing_timer_is_noop(engine):
    await engine.report_kill("venatus", KILL, "g1", "c1")

    assert await engine.remove_timer("ego", "g1") is False
    assert await engine.remove_timer("venatus", "g2") is False
    assert [t.boss_id for t in await engine.list_guild_timers("g1")] == ["venatus"]

    assert await engine.remove_timer("venatus", "g1") is True
    assert await engine.get_timer("venatus", "g1") is None


async def test_remove_timer_for_reports_outcome(engine):
    unknown = await engine.remove_timer_for("Dragon", "g1")
    assert not unknown.success
    assert "Dragon" in unknown.message

    missing = await engine.remove_timer_for("Lady Dalia", "g1")
    assert not missing.success
    assert "Lady Dalia" in missing.message

    await engine.report_kill("ladydalia", KILL, "g1", "c1")
    removed = await engine.remove_timer_for("Lady Dalia", "g1")
    assert removed.success
    assert removed.boss.id == "ladydalia"
    assert removed.timer.last_kill_time == KILL
    assert await engine.get_timer("ladydalia", "g1") is None


async def test_record_kill_uses_configured_channel(engine, storage):
    await storage.set_guild_settings(GuildSettings("g1", notification_channel="alerts"))

    timer = await engine.record_kill("venatus", None, "g1", "here")
    assert timer.channel_id == "alerts"

    timer = await engine.record_kill("venatus", None, "g2", "here")
    assert timer.channel_id == "here"


async def test_record_kill_without_time_uses_now(engine, clock):
    for text in (None, "", "now", " NOW "):
        timer = await engine.record_kill("venatus", text, "g1", "c1")
        assert timer.last_kill_time == clock.now()


async def test_record_kill_parses_reported_time(engine):
    # clock is 3 PM in GMT+8
    timer = await engine.record_kill("venatus", "2:30 PM", "g1", "c1")
    assert timer.last_kill_time == datetime.datetime(2026, 3, 10, 6, 30, tzinfo=UTC)
    assert timer.next_spawn_time == datetime.datetime(2026, 3, 10, 16, 30, tzinfo=UTC)


async def test_record_kill_invalid_time_stores_nothing(engine):
    with pytest.raises(InvalidTimeFormat):
        await engine.record_kill("venatus", "25:00", "g1", "c1")
    assert await engine.get_timer("venatus", "g1") is None


async def test_snapshot_uses_engine_clock(storage, clock):
    engine = TimerEngine(storage, clock)
    timer = await engine.report_kill("venatus", clock.now(), "g1", "c1")

    snapshot = engine.snapshot(timer)
    assert snapshot.boss.id == "venatus"
    assert snapshot.remaining == datetime.timedelta(hours=10)
    assert not snapshot.is_ready

    clock.advance(hours=10)
    assert engine.snapshot(timer).is_ready
    assert engine.is_ready(timer)


async def test_report_kill_rejects_naive_time(engine):
    with pytest.raises(ValueError):
        await engine.report_kill("venatus", datetime.datetime(2026, 3, 10, 7, 0), "g1", "c1")
    assert await engine.get_timer("venatus", "g1") is None
