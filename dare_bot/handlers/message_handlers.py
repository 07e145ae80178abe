"""
Message Handlers

This module handles messages that are not commands: plain text and
the photos and videos players send as proof.
"""

from telegram import Update
from telegram.ext import ContextTypes

from ..utils.logging_config import log_user_action, get_logger
from .proof_handlers import handle_proof_code_text, handle_proof_media

# Logger setup
logger = get_logger(__name__)


async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle incoming text messages that are not commands.

    Only messages carrying a proof code get an answer; everything else
    is ordinary chat and is ignored.

    Args:
        update: Telegram update object
        context: Bot context
    """
    if not update.message or not update.message.text:
        return

    if await handle_proof_code_text(update, context):
        log_user_action(update.effective_user.id, "proof_code_text")


async def handle_media_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle incoming photos and videos.

    Args:
        update: Telegram update object
        context: Bot context
    """
    if not update.message:
        return

    await handle_proof_media(update, context)
