"""
Centralized error handling for Telegram updates
"""
from tracking import t

import logging
from typing import Optional

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from botapp.messages.formatting import GENERIC_ERROR_MESSAGE


class ErrorHandler:
    """
    Last-resort handling for exceptions raised while processing an update

    Logs the failure with its traceback and tells the user, without details,
    that something went wrong.
    """

    @staticmethod
    async def handle_telegram_error(update: Optional[object], context: ContextTypes.DEFAULT_TYPE, error: Exception) -> None:
        """
        Log ``error`` and send a generic reply when the update has a chat

        Args:
            update: The telegram update that caused the error (may be None)
            context: The callback context
            error: The exception that occurred
        """
        t('botapp.error_handler.ErrorHandler.handle_telegram_error')
        logger = logging.getLogger('ErrorHandler')

        if "message is not modified" in str(error).lower():
            logger.warning(f"Telegram message not modified: {error}")
            return

        logger.error(f"Telegram error occurred: {type(error).__name__}: {error}", exc_info=error)

        if not isinstance(update, Update):
            logger.warning("No update object available - cannot send error message to user")
            return

        if update.effective_user:
            logger.error(f"Error context - User ID: {update.effective_user.id}")

        chat = update.effective_chat
        if chat is None:
            logger.warning("Unable to send error message - no chat available")
            return

        try:
            await context.bot.send_message(chat_id=chat.id, text=GENERIC_ERROR_MESSAGE)
        except TelegramError as send_error:
            logger.error(f"Failed to send error message to user: {send_error}", exc_info=True)


__all__ = ['ErrorHandler']
