"""Telegram bot runtime application wiring."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from typing import Dict, Optional

from telegram import Update
from telegram.ext import Application, ContextTypes

from automation.session import AutomationSession
from automation.shared.booking_contracts import BookingAction
from botapp.booking.dispatcher import ActionDispatcher
from botapp.calendar_sync import GoogleCalendarSync
from botapp.commands.handlers import register_core_handlers
from botapp.commands.parser import USAGE, CommandParseError, parse_action_command, today_in
from botapp.config import BotAppConfig, load_bot_config
from botapp.error_handler import ErrorHandler
from botapp.messages.formatting import CONFIGURATION_ERROR_MESSAGE
from botapp.runtime.lifecycle import LifecycleManager
from botapp.sessions.registry import SessionRegistry
from botapp.transport import TelegramTransport
from infrastructure.settings import ConfigurationError

WELCOME_MESSAGE = "🎾 Welcome! I can check court availability and book courts for you."
STOPPED_MESSAGE = (
    "👋 Paused. Your browser session is kept for a while in case you come back; "
    "send any command to continue."
)
WORKING_MESSAGE = "🔍 Working on it, this can take a minute..."


class BotApplication:
    """Assemble the session registry, dispatcher and handlers for Telegram."""

    def __init__(self, config: Optional[BotAppConfig] = None) -> None:
        t('botapp.runtime.bot_application.BotApplication.__init__')
        self.logger = logging.getLogger('CourtBot')
        self.config = config or load_bot_config()
        self.settings = self.config.settings
        self.token = self.config.telegram.token

        self.registry = SessionRegistry(
            lambda: AutomationSession.from_settings(self.settings),
            idle_seconds=self.config.sessions.idle_seconds,
            credentials=self.settings.credentials,
        )
        self.calendar_sync = GoogleCalendarSync(self.settings.calendar)
        self.dispatcher = ActionDispatcher(self.registry, self.calendar_sync)
        self.lifecycle = LifecycleManager(self.registry, self.dispatcher, logger=self.logger)
        # Strong references; the registry only holds weak ones.
        self.transports: Dict[str, TelegramTransport] = {}
        self._inactivity: Dict[str, asyncio.Task] = {}
        self.application = None

    async def attach_chat(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[str]:
        """Attach this chat to its session; None (after replying) when that is impossible."""

        t('botapp.runtime.bot_application.BotApplication.attach_chat')
        chat = update.effective_chat
        if chat is None:
            return None
        session_id = str(chat.id)

        transport = self.transports.get(session_id)
        if transport is not None and session_id in self.registry:
            if self.registry.get(session_id).transport is transport:
                self._touch(session_id)
                return session_id

        transport = TelegramTransport(context.bot, chat.id)
        try:
            await self.registry.attach(session_id, transport)
        except ConfigurationError as exc:
            self.logger.error("Cannot create session for chat %s: %s", session_id, exc)
            await self._send_message(update, context, CONFIGURATION_ERROR_MESSAGE)
            return None
        self.transports[session_id] = transport
        self._touch(session_id)
        return session_id

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start command."""
        t('botapp.runtime.bot_application.BotApplication.start_command')

        if await self.attach_chat(update, context) is None:
            return
        await self._send_message(update, context, f"{WELCOME_MESSAGE}\n\n{USAGE}")

    async def times_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /times <sport> <date> [time]."""
        t('botapp.runtime.bot_application.BotApplication.times_command')
        await self._run_action(update, context, BookingAction.QUERY_TIMES)

    async def book_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /book <sport> <date> <time>."""
        t('botapp.runtime.bot_application.BotApplication.book_command')
        await self._run_action(update, context, BookingAction.BOOK)

    async def stop_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /stop: detach the chat and start its idle window."""
        t('botapp.runtime.bot_application.BotApplication.stop_command')

        chat = update.effective_chat
        if chat is None:
            return
        session_id = str(chat.id)
        self._cancel_inactivity(session_id)
        transport = self.transports.pop(session_id, None)
        self.registry.detach(session_id, transport)
        await self._send_message(update, context, STOPPED_MESSAGE)

    async def text_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Free text is not interpreted; point the user at the commands."""
        t('botapp.runtime.bot_application.BotApplication.text_message')
        await self._send_message(update, context, USAGE)

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Central error handler for Telegram exceptions."""
        t('botapp.runtime.bot_application.BotApplication.error_handler')
        await ErrorHandler.handle_telegram_error(update, context, context.error)

    async def _run_action(self, update: Update, context: ContextTypes.DEFAULT_TYPE, action: BookingAction) -> None:
        t('botapp.runtime.bot_application.BotApplication._run_action')

        session_id = await self.attach_chat(update, context)
        if session_id is None:
            return
        try:
            request = parse_action_command(action, context.args or [], today_in(self.config.timezone))
        except CommandParseError as exc:
            await self._send_message(update, context, str(exc))
            return

        if not request.missing_fields() and not self.registry.get(session_id).busy:
            await self._send_message(update, context, WORKING_MESSAGE)
        await self.dispatcher.dispatch(session_id, request)

    def run(self) -> None:
        """Run the Telegram bot using asyncio-ready Application."""
        t('botapp.runtime.bot_application.BotApplication.run')

        app = Application.builder().token(self.token).concurrent_updates(True).build()
        register_core_handlers(app, self)

        app.post_init = self._post_init
        app.post_stop = self._post_stop

        self.application = app
        self.logger.info("Starting async bot...")
        app.run_polling()

    async def _post_init(self, application) -> None:
        t('botapp.runtime.bot_application.BotApplication._post_init')
        await self.lifecycle.post_init(application)
        self.application = application

    async def _post_stop(self, application) -> None:
        t('botapp.runtime.bot_application.BotApplication._post_stop')
        for session_id in list(self._inactivity):
            self._cancel_inactivity(session_id)
        await self.lifecycle.post_stop(application)
        self.transports.clear()
        self.application = None

    def _touch(self, session_id: str) -> None:
        """Restart the chat's inactivity timer; a quiet chat is detached like /stop."""
        t('botapp.runtime.bot_application.BotApplication._touch')
        self._cancel_inactivity(session_id)
        self._inactivity[session_id] = asyncio.get_running_loop().create_task(
            self._detach_when_inactive(session_id)
        )

    def _cancel_inactivity(self, session_id: str) -> None:
        task = self._inactivity.pop(session_id, None)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _detach_when_inactive(self, session_id: str) -> None:
        t('botapp.runtime.bot_application.BotApplication._detach_when_inactive')
        await asyncio.sleep(self.config.sessions.idle_seconds)
        if session_id in self.registry and self.registry.get(session_id).busy:
            self._touch(session_id)
            return
        self._inactivity.pop(session_id, None)
        transport = self.transports.pop(session_id, None)
        self.logger.info("Chat %s inactive for %ss, detaching", session_id, self.config.sessions.idle_seconds)
        self.registry.detach(session_id, transport)

    async def _send_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE, text: str, **kwargs) -> None:
        """Reply to the current chat, falling back to context.bot when needed."""
        t('botapp.runtime.bot_application.BotApplication._send_message')

        if update.message:
            await update.message.reply_text(text, **kwargs)
            return

        chat = update.effective_chat
        if not chat:
            self.logger.warning("No chat available to deliver message")
            return

        await context.bot.send_message(chat_id=chat.id, text=text, **kwargs)


__all__ = ['BotApplication']
