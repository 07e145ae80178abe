"""
Error Handlers

This module handles errors and exceptions that occur during bot operation.
It provides graceful error handling and user-friendly error messages.
"""

import traceback
from telegram import Update
from telegram.ext import ContextTypes

from ..game.errors import PartyGameError
from ..utils.logging_config import get_logger
from ..utils.config import is_development

# Logger setup
logger = get_logger(__name__)


def build_error_text(error: object) -> str:
    """User-facing text for an error that escaped a handler."""
    if isinstance(error, PartyGameError):
        return f"❌ {error.user_message}"

    if is_development():
        # In development, show detailed error for debugging
        return f"""
🐛 **Development Error**

An error occurred: `{error}`

This detailed message is only shown in development mode.
        """

    # In production, show generic error message
    return """
⚠️ **Something went wrong**

I couldn't finish that. Please try again in a few moments.
    """


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle errors that occur during bot operation.

    This function logs errors and provides appropriate user feedback.
    In development, it shows detailed error information.

    Args:
        update: Telegram update object (may be None)
        context: Bot context containing error information
    """
    error = context.error
    error_message = str(error) if error else "Unknown error"

    # Get user and chat information if available
    user_id = None
    chat_id = None

    if isinstance(update, Update):
        if update.effective_user:
            user_id = update.effective_user.id
        if update.effective_chat:
            chat_id = update.effective_chat.id

    update_type = type(update).__name__ if update else None
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__)) if error else None
    logger.error(
        f"Bot error occurred - error_message={error_message}, user_id={user_id}, "
        f"chat_id={chat_id}, update_type={update_type}, traceback={tb}"
    )

    if not chat_id:
        return

    try:
        await context.bot.send_message(
            chat_id=chat_id,
            text=build_error_text(error),
            parse_mode='Markdown'
        )
    except Exception as send_error:
        # If we can't even send an error message, log it
        logger.error(
            f"Failed to send error message to user - original_error={error_message}, "
            f"send_error={str(send_error)}, chat_id={chat_id}"
        )
