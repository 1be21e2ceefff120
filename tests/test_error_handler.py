"""Tests for interaction error replies."""

from types import SimpleNamespace

from error_handler import ErrorHandler
from fieldboss.errors import PersistenceFailure, UnknownBoss


class FakeResponse:
    def __init__(self):
        self.sent = []

    def is_done(self):
        return False

    async def send_message(self, **kwargs):
        self.sent.append(kwargs)


def make_interaction():
    return SimpleNamespace(
        command=SimpleNamespace(name="status"),
        user=SimpleNamespace(display_name="tester", id=1),
        guild=None,
        response=FakeResponse(),
    )


async def test_known_error_replies_with_its_message():
    handler = ErrorHandler(bot=None, owner_id=0)
    interaction = make_interaction()

    await handler.handle_interaction_error(interaction, UnknownBoss("Dragon"))

    reply = interaction.response.sent[0]
    assert reply["ephemeral"] is True
    assert reply["embed"].title == "❌ Error"
    assert reply["embed"].description == UnknownBoss("Dragon").user_message
    assert handler.error_counts == {}


async def test_persistence_failure_replies_with_transient_message():
    handler = ErrorHandler(bot=None, owner_id=0)
    interaction = make_interaction()

    await handler.handle_interaction_error(interaction, PersistenceFailure("disk I/O error"))

    embed = interaction.response.sent[0]["embed"]
    assert embed.title == "❌ Command Error"
    assert embed.description == PersistenceFailure.user_message
    assert handler.error_counts == {"PersistenceFailure": 1}


async def test_unexpected_error_gets_generic_reply():
    handler = ErrorHandler(bot=None, owner_id=0)
    interaction = make_interaction()

    await handler.handle_interaction_error(interaction, RuntimeError("boom"))

    embed = interaction.response.sent[0]["embed"]
    assert "bot owner has been notified" in embed.description
