"""Utilities to register Telegram command and message handlers."""

from __future__ import annotations
from tracking import t

from telegram.ext import Application, CommandHandler, MessageHandler, filters


def register_core_handlers(application: Application, bot) -> None:
    """Wire up the bot's commands, free-text fallback and error handler."""

    t('botapp.commands.handlers.register_core_handlers')

    application.add_handler(CommandHandler("start", bot.start_command))
    application.add_handler(CommandHandler("times", bot.times_command))
    application.add_handler(CommandHandler("book", bot.book_command))
    application.add_handler(CommandHandler("stop", bot.stop_command))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, bot.text_message))
    application.add_error_handler(bot.error_handler)


__all__ = ['register_core_handlers']
