"""Tests for the quick kill button under live status messages."""

from types import SimpleNamespace

from fieldboss.commands import QuickKillButton, QuickKillView


class FakeCog:
    def __init__(self, error=None):
        self.kills = []
        self.error = error

    async def process_kill(self, interaction, boss_id, time_text, edit=True):
        if self.error:
            raise self.error
        self.kills.append((boss_id, time_text, edit))


class FakeErrorHandler:
    def __init__(self):
        self.errors = []

    async def handle_interaction_error(self, interaction, error):
        self.errors.append(error)


def make_interaction(cog):
    client = SimpleNamespace(get_cog=lambda name: cog, error_handler=FakeErrorHandler())
    return SimpleNamespace(client=client)


def test_custom_id_encodes_boss():
    button = QuickKillButton("generalaquleus")
    assert button.custom_id == "quick_kill:generalaquleus"
    assert button.template.fullmatch(button.custom_id)["boss_id"] == "generalaquleus"


async def test_button_is_rebuilt_from_custom_id():
    match = QuickKillButton("venatus").template.fullmatch("quick_kill:ladydalia")
    button = await QuickKillButton.from_custom_id(None, None, match)
    assert button.boss_id == "ladydalia"
    assert button.custom_id == "quick_kill:ladydalia"


async def test_click_reports_kill_at_current_time():
    cog = FakeCog()
    interaction = make_interaction(cog)

    await QuickKillButton("venatus").callback(interaction)

    assert cog.kills == [("venatus", None, False)]
    assert interaction.client.error_handler.errors == []


async def test_click_errors_go_to_error_handler():
    error = RuntimeError("boom")
    interaction = make_interaction(FakeCog(error))

    await QuickKillButton("venatus").callback(interaction)

    assert interaction.client.error_handler.errors == [error]


async def test_view_expires():
    view = QuickKillView("venatus")
    assert view.timeout is not None
    assert [item.custom_id for item in view.children] == ["quick_kill:venatus"]
