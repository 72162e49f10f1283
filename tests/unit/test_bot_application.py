from tracking import t
import asyncio
import dataclasses

import pytest

from automation.shared.booking_contracts import AvailabilityResult
from botapp.commands.parser import USAGE
from botapp.config import load_bot_config
from botapp.messages.formatting import CONFIGURATION_ERROR_MESSAGE, TIME_REQUIRED_MESSAGE
from botapp.runtime import BotApplication
from botapp.runtime.bot_application import STOPPED_MESSAGE, WELCOME_MESSAGE, WORKING_MESSAGE
from botapp.sessions.registry import BUSY_MESSAGE
from infrastructure.settings import load_settings
from tests.bot.fakes import ChatHarness

ENV = {
    "TELEGRAM_BOT_TOKEN": "123:abc",
    "CLUB_USERNAME": "player@example.com",
    "CLUB_PASSWORD": "secret",
    "GOOGLE_CALENDAR_CREDENTIALS_PATH": "/nonexistent/calendar.json",
}


class StubAutomation:
    companion_name = "Samuel Wang"

    def __init__(self) -> None:
        self.queries = []
        self.closed = 0
        self.initialized = False
        self.gate = None

    async def query(self, sport, target_date, time=None):
        self.queries.append((sport, target_date, time))
        if self.gate is not None:
            await self.gate.wait()
        return AvailabilityResult(times=["2:30 - 4:00 PM"])

    async def book(self, sport, target_date, time):  # pragma: no cover - not reached here
        raise AssertionError("unexpected booking")

    async def close(self):
        self.closed += 1


def _bot(monkeypatch, env=None, automation=None, idle_seconds=None):
    automation = automation or StubAutomation()
    monkeypatch.setattr(
        "botapp.runtime.bot_application.AutomationSession.from_settings",
        staticmethod(lambda settings: automation),
    )
    config = load_bot_config(load_settings(env or ENV))
    if idle_seconds is not None:
        config = dataclasses.replace(
            config, sessions=dataclasses.replace(config.sessions, idle_seconds=idle_seconds)
        )
    bot = BotApplication(config)
    return bot, automation


@pytest.mark.asyncio
async def test_start_attaches_and_greets(monkeypatch):
    t('tests.unit.test_bot_application.test_start_attaches_and_greets')
    bot, _ = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.start_command(*chat.command())

    assert chat.texts == [f"{WELCOME_MESSAGE}\n\n{USAGE}"]
    assert "4242" in bot.registry
    assert bot.registry.get("4242").attached


@pytest.mark.asyncio
async def test_times_command_runs_query(monkeypatch):
    t('tests.unit.test_bot_application.test_times_command_runs_query')
    bot, automation = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.times_command(*chat.command("tennis", "2099-02-10"))

    assert chat.texts[0] == WORKING_MESSAGE
    assert chat.texts[1].startswith("Available tennis courts on Tuesday, February 10, 2099:")
    assert [entry["action"] for entry in chat.records] == ["reply_text", "send_message"]
    assert len(automation.queries) == 1


@pytest.mark.asyncio
async def test_unparseable_command_is_explained(monkeypatch):
    t('tests.unit.test_bot_application.test_unparseable_command_is_explained')
    bot, automation = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.times_command(*chat.command("golf", "tomorrow"))

    assert len(chat.texts) == 1
    assert "Unknown sport" in chat.texts[0]
    assert automation.queries == []


@pytest.mark.asyncio
async def test_book_without_time_skips_working_notice(monkeypatch):
    t('tests.unit.test_bot_application.test_book_without_time_skips_working_notice')
    bot, _ = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.book_command(*chat.command("tennis", "2099-02-10"))

    assert chat.texts == [TIME_REQUIRED_MESSAGE]
    assert bot.registry.get("4242").automation is None


@pytest.mark.asyncio
async def test_second_command_while_busy(monkeypatch):
    t('tests.unit.test_bot_application.test_second_command_while_busy')
    automation = StubAutomation()
    automation.gate = asyncio.Event()
    bot, _ = _bot(monkeypatch, automation=automation)
    chat = ChatHarness()

    first = asyncio.ensure_future(bot.times_command(*chat.command("tennis", "2099-02-10")))
    while not automation.queries:
        await asyncio.sleep(0)
    await bot.times_command(*chat.command("pickleball", "2099-02-11"))
    automation.gate.set()
    await first

    assert chat.texts[:2] == [WORKING_MESSAGE, BUSY_MESSAGE]
    assert len(automation.queries) == 1


@pytest.mark.asyncio
async def test_missing_credentials_reported_on_attach(monkeypatch):
    t('tests.unit.test_bot_application.test_missing_credentials_reported_on_attach')
    env = {key: value for key, value in ENV.items() if key != "CLUB_PASSWORD"}
    bot, _ = _bot(monkeypatch, env=env)
    chat = ChatHarness()

    await bot.times_command(*chat.command("tennis", "tomorrow"))

    assert chat.texts == [CONFIGURATION_ERROR_MESSAGE]
    assert len(bot.registry) == 0


@pytest.mark.asyncio
async def test_stop_detaches_but_keeps_session(monkeypatch):
    t('tests.unit.test_bot_application.test_stop_detaches_but_keeps_session')
    bot, _ = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.start_command(*chat.command())
    await bot.stop_command(*chat.command())

    assert chat.texts[-1] == STOPPED_MESSAGE
    session = bot.registry.get("4242")
    assert not session.attached
    assert session.eviction_task is not None
    await bot.registry.drain()


@pytest.mark.asyncio
async def test_free_text_gets_usage(monkeypatch):
    t('tests.unit.test_bot_application.test_free_text_gets_usage')
    bot, _ = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.text_message(*chat.command())

    assert chat.texts == [USAGE]


@pytest.mark.asyncio
async def test_post_stop_drains_sessions(monkeypatch):
    t('tests.unit.test_bot_application.test_post_stop_drains_sessions')
    bot, automation = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.times_command(*chat.command("tennis", "2099-02-10"))
    await bot._post_init(application=None)
    await bot._post_stop(application=None)

    assert len(bot.registry) == 0
    assert automation.closed == 1
    assert bot.transports == {}


@pytest.mark.asyncio
async def test_inactive_chat_is_detached_and_evicted(monkeypatch):
    t('tests.unit.test_bot_application.test_inactive_chat_is_detached_and_evicted')
    bot, automation = _bot(monkeypatch, idle_seconds=0.05)
    chat = ChatHarness()

    await bot.times_command(*chat.command("tennis", "2099-02-10"))
    assert bot.registry.get("4242").automation is automation

    for _ in range(50):
        if "4242" not in bot.registry:
            break
        await asyncio.sleep(0.02)

    assert "4242" not in bot.registry
    assert automation.closed == 1
    assert bot.transports == {}


@pytest.mark.asyncio
async def test_activity_restarts_inactivity_timer(monkeypatch):
    t('tests.unit.test_bot_application.test_activity_restarts_inactivity_timer')
    bot, _ = _bot(monkeypatch, idle_seconds=0.3)
    chat = ChatHarness()

    await bot.start_command(*chat.command())
    await asyncio.sleep(0.2)
    await bot.start_command(*chat.command())
    await asyncio.sleep(0.2)

    assert bot.registry.get("4242").attached
    assert "4242" in bot.transports
    await bot._post_stop(application=None)


@pytest.mark.asyncio
async def test_busy_chat_is_not_detached(monkeypatch):
    t('tests.unit.test_bot_application.test_busy_chat_is_not_detached')
    automation = StubAutomation()
    automation.gate = asyncio.Event()
    bot, _ = _bot(monkeypatch, automation=automation, idle_seconds=0.05)
    chat = ChatHarness()

    running = asyncio.ensure_future(bot.times_command(*chat.command("tennis", "2099-02-10")))
    await asyncio.sleep(0.12)

    assert bot.registry.get("4242").attached
    automation.gate.set()
    await running
    assert chat.texts[-1].startswith("Available tennis courts")
    await bot._post_stop(application=None)


@pytest.mark.asyncio
async def test_stop_cancels_inactivity_timer(monkeypatch):
    t('tests.unit.test_bot_application.test_stop_cancels_inactivity_timer')
    bot, _ = _bot(monkeypatch)
    chat = ChatHarness()

    await bot.start_command(*chat.command())
    timer = bot._inactivity["4242"]
    await bot.stop_command(*chat.command())
    await asyncio.sleep(0)

    assert timer.cancelled()
    assert bot._inactivity == {}
    await bot.registry.drain()
