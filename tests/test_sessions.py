"""Tests for the setup session store."""

import datetime

from fieldboss.models import SetupSession
from fieldboss.sessions import SetupSessionStore


def make_store(clock, **kwargs):
    return SetupSessionStore(ttl=datetime.timedelta(minutes=15), clock=clock, **kwargs)


def test_get_or_create_returns_same_session(clock):
    store = make_store(clock)
    session = store.get_or_create("g1", "u1")
    session.channel_id = "c1"

    assert store.get_or_create("g1", "u1").channel_id == "c1"
    assert store.get("g1", "u2") is None
    assert len(store) == 1


def test_sessions_expire_after_ttl(clock):
    store = make_store(clock)
    store.put("g1", "u1", SetupSession(channel_id="c1"))

    clock.advance(minutes=14)
    assert store.get("g1", "u1").channel_id == "c1"

    clock.advance(minutes=2)
    assert store.get("g1", "u1") is None
    assert len(store) == 0


def test_put_restarts_ttl(clock):
    store = make_store(clock)
    session = store.get_or_create("g1", "u1")

    clock.advance(minutes=10)
    store.put("g1", "u1", session)
    clock.advance(minutes=10)
    assert store.get("g1", "u1") is session


def test_oldest_session_is_evicted_over_cap(clock):
    store = make_store(clock, max_entries=2)
    store.put("g1", "u1", SetupSession())
    store.put("g1", "u2", SetupSession())
    store.put("g1", "u1", SetupSession(role_id="r1"))
    store.put("g1", "u3", SetupSession())

    assert len(store) == 2
    assert store.get("g1", "u2") is None
    assert store.get("g1", "u1").role_id == "r1"


def test_pop_removes_session(clock):
    store = make_store(clock)
    store.put("g1", "u1", SetupSession(warning_minutes=10))

    assert store.pop("g1", "u1").warning_minutes == 10
    assert store.pop("g1", "u1") is None


def test_pop_expired_session_returns_none(clock):
    store = make_store(clock)
    store.put("g1", "u1", SetupSession())
    clock.advance(minutes=20)
    assert store.pop("g1", "u1") is None
